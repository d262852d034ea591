"""
헬스체크 엔드포인트
서버 및 외부 서비스 상태 확인
"""
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from scent_concierge.config import get_settings
from scent_concierge.services.catalog_store import get_catalog
from scent_concierge.services.session_store import get_session_store

router = APIRouter()


class HealthResponse(BaseModel):
    """헬스체크 응답"""

    status: Literal["healthy", "degraded", "unhealthy"]
    llm_provider: str
    voice: Literal["up", "unchecked"]
    catalog_items: int
    active_sessions: int


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    서버 상태 확인

    Returns:
        HealthResponse: 서버 및 외부 서비스 상태
    """
    settings = get_settings()
    active_sessions = await get_session_store().get_active_count()

    llm_configured = settings.llm_configured
    voice_configured = bool(settings.elevenlabs_api_key)

    # 전체 상태 결정
    if llm_configured and voice_configured:
        status = "healthy"
    elif llm_configured:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        llm_provider=settings.llm_provider,
        voice="up" if voice_configured else "unchecked",
        catalog_items=len(get_catalog()),
        active_sessions=active_sessions,
    )

"""
응답 모델 정의
오케스트레이터 결과 및 API 응답 관련 Pydantic 모델
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from scent_concierge.models.catalog import CatalogItem

ErrorTag = Literal["API_KEY_ERROR", "SERVICE_ERROR"]


class OrchestratorReply(BaseModel):
    """process_message 결과"""

    text: str = Field(..., description="자연어 응답")
    items: List[CatalogItem] = Field(default_factory=list, description="매칭된 상품 전체 레코드")
    tool_called: bool = Field(default=False, description="searchPerfumes 호출 여부")
    search_params: Optional[Dict[str, Any]] = Field(None, description="적용된 검색 파라미터")
    error: Optional[ErrorTag] = Field(None, description="에러 태그")


class ChatResponse(BaseModel):
    """채팅 응답"""

    session_id: str = Field(..., description="세션 ID")
    text: str = Field(..., description="어시스턴트 응답")
    speech_text: str = Field(..., description="TTS용 텍스트 (마크다운 제거)")
    items: List[CatalogItem] = Field(default_factory=list, description="추천 상품 카드")
    tool_called: bool = Field(default=False, description="검색 도구 호출 여부")
    search_params: Optional[Dict[str, Any]] = Field(None, description="적용된 검색 파라미터")
    error: Optional[ErrorTag] = Field(None, description="에러 태그")

    # 메타
    processing_time_ms: int = Field(..., description="처리 시간 (밀리초)")

"""
채팅 엔드포인트
사용자 메시지 처리 및 향수 추천 응답 반환
"""
import logging
import time
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from scent_concierge.agents.orchestrator import ConversationOrchestrator
from scent_concierge.models.response import ChatResponse
from scent_concierge.models.session import ChatSession, Turn
from scent_concierge.services.session_store import get_session_store
from scent_concierge.utils.text_parser import to_speech_text

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    """채팅 요청"""

    message: str = Field(..., min_length=1, max_length=500, description="사용자 메시지")
    session_id: Optional[str] = Field(None, description="세션 ID (없으면 자동 생성)")


class ResetRequest(BaseModel):
    """대화 초기화 요청"""

    session_id: str = Field(..., description="세션 ID")


class ResetResponse(BaseModel):
    """대화 초기화 응답"""

    session_id: str
    cleared: bool


class HistoryResponse(BaseModel):
    """대화 이력 응답"""

    session_id: str
    turn_count: int
    turns: List[Turn]


async def run_chat_turn(session: ChatSession, message: str) -> ChatResponse:
    """
    세션에 대해 한 턴 처리 (텍스트 채팅과 음성 채널 공용)

    같은 세션의 요청은 세션 락으로 직렬화합니다.

    Args:
        session: 대화 세션
        message: 사용자 메시지 또는 음성 인식 결과

    Returns:
        ChatResponse
    """
    start_time = time.time()

    async with session.lock:
        reply = await ConversationOrchestrator(session).process_message(message)

    processing_time_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"[Chat] {session.session_id} 처리 완료: "
        f"tool_called={reply.tool_called}, items={len(reply.items)}, {processing_time_ms}ms"
    )

    return ChatResponse(
        session_id=session.session_id,
        text=reply.text,
        speech_text=to_speech_text(reply.text),
        items=reply.items,
        tool_called=reply.tool_called,
        search_params=reply.search_params,
        error=reply.error,
        processing_time_ms=processing_time_ms,
    )


@router.post("/chat", response_model=ChatResponse)
async def send_chat_message(request: ChatRequest) -> ChatResponse:
    """
    채팅 메시지 처리

    LLM이 필요하면 searchPerfumes 도구로 카탈로그를 검색하고 결과를 요약합니다.
    LLM 오류는 HTTP 오류가 아니라 사과 문구와 에러 태그로 응답합니다.

    Args:
        request: 채팅 요청 (메시지, 세션 ID)

    Returns:
        ChatResponse: 응답 텍스트, 추천 상품, 적용된 검색 파라미터
    """
    session = await get_session_store().get_or_create_session(request.session_id)
    return await run_chat_turn(session, request.message)


@router.post("/chat/reset", response_model=ResetResponse)
async def reset_chat(request: ResetRequest) -> ResetResponse:
    """대화 이력 초기화"""
    session = await get_session_store().get_session(request.session_id)
    if session is None:
        return ResetResponse(session_id=request.session_id, cleared=False)

    async with session.lock:
        ConversationOrchestrator(session).reset()

    return ResetResponse(session_id=session.session_id, cleared=True)


@router.get("/chat/{session_id}/history", response_model=HistoryResponse)
async def get_chat_history(
    session_id: str,
    limit: Optional[int] = Query(None, ge=1, description="최근 N개 턴만 조회"),
) -> HistoryResponse:
    """대화 이력 조회"""
    session = await get_session_store().get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="세션을 찾을 수 없습니다")

    turns = session.get_recent_turns(limit) if limit else list(session.turns)
    return HistoryResponse(
        session_id=session.session_id,
        turn_count=session.turn_count,
        turns=turns,
    )

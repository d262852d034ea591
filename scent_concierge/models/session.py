"""
세션 모델 정의
대화 세션 및 턴(Turn) 이력 관련 모델
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, PrivateAttr


def utc_now() -> datetime:
    """현재 UTC 시각 (timezone-aware)"""
    return datetime.now(timezone.utc)


class Turn(BaseModel):
    """
    대화 이력의 한 단위

    - text: 사용자 메시지 또는 모델 응답 텍스트
    - tool_call: 모델의 도구 호출 요청 (role=model)
    - tool_result: 도구 실행 결과 (role=user)
    """

    role: Literal["user", "model"] = Field(..., description="역할")
    kind: Literal["text", "tool_call", "tool_result"] = Field(default="text", description="내용 유형")
    text: Optional[str] = Field(None, description="텍스트 내용")
    tool_name: Optional[str] = Field(None, description="도구 이름")
    tool_call_id: Optional[str] = Field(None, description="도구 호출 ID")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="도구 호출 인자")
    payload: Dict[str, Any] = Field(default_factory=dict, description="도구 실행 결과")
    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def user_text(cls, text: str) -> "Turn":
        return cls(role="user", kind="text", text=text)

    @classmethod
    def model_text(cls, text: str) -> "Turn":
        return cls(role="model", kind="text", text=text)

    @classmethod
    def tool_call(cls, name: str, call_id: str, arguments: Dict[str, Any]) -> "Turn":
        return cls(
            role="model",
            kind="tool_call",
            tool_name=name,
            tool_call_id=call_id,
            arguments=arguments,
        )

    @classmethod
    def tool_result(cls, name: str, call_id: str, payload: Dict[str, Any]) -> "Turn":
        return cls(
            role="user",
            kind="tool_result",
            tool_name=name,
            tool_call_id=call_id,
            payload=payload,
        )


class ChatSession(BaseModel):
    """
    대화 세션 상태

    턴 이력은 오케스트레이터만 추가/초기화합니다 (append-only).
    """

    session_id: str = Field(..., description="세션 ID")
    turns: List[Turn] = Field(default_factory=list, description="대화 이력")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    turn_count: int = Field(default=0, description="사용자 메시지 수")

    # 한 세션에서 process_message는 한 번에 하나만 실행
    _lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    def append(self, turn: Turn) -> None:
        """턴 추가"""
        self.turns.append(turn)
        if turn.role == "user" and turn.kind == "text":
            self.turn_count += 1
        self.updated_at = utc_now()

    def reset(self) -> None:
        """대화 이력 전체 삭제"""
        self.turns.clear()
        self.turn_count = 0
        self.updated_at = utc_now()

    def get_recent_turns(self, count: int = 6) -> List[Turn]:
        """최근 N개 턴 반환"""
        return self.turns[-count:]

"""
세션 저장소
인메모리 대화 세션 관리 (asyncio.Lock 사용)
"""
import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

from scent_concierge.config import get_settings
from scent_concierge.models.session import ChatSession, utc_now

logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """인메모리 세션 저장소"""

    def __init__(self, ttl_minutes: Optional[int] = None) -> None:
        self._sessions: Dict[str, ChatSession] = {}
        self._lock = asyncio.Lock()
        self._ttl = timedelta(
            minutes=ttl_minutes if ttl_minutes is not None else get_settings().session_ttl_minutes
        )

    def _is_expired(self, session: ChatSession, now: datetime) -> bool:
        # 마지막 활동 기준 TTL
        return now - session.updated_at > self._ttl

    async def create_session(self) -> ChatSession:
        """새 세션 생성"""
        session_id = f"sess_{uuid.uuid4().hex[:12]}"
        session = ChatSession(session_id=session_id)

        async with self._lock:
            self._sessions[session_id] = session

        return session

    async def get_session(self, session_id: str) -> Optional[ChatSession]:
        """세션 조회"""
        async with self._lock:
            session = self._sessions.get(session_id)

            if session and self._is_expired(session, utc_now()):
                del self._sessions[session_id]
                return None

            return session

    async def get_or_create_session(self, session_id: Optional[str]) -> ChatSession:
        """세션 조회 또는 생성"""
        if session_id:
            session = await self.get_session(session_id)
            if session:
                return session

        return await self.create_session()

    async def delete_session(self, session_id: str) -> bool:
        """세션 삭제"""
        async with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    async def clear_expired(self) -> int:
        """만료된 세션 정리"""
        now = utc_now()

        async with self._lock:
            expired_ids = [
                sid for sid, session in self._sessions.items() if self._is_expired(session, now)
            ]
            for sid in expired_ids:
                del self._sessions[sid]

        if expired_ids:
            logger.info(f"[SessionStore] 만료 세션 {len(expired_ids)}개 정리")
        return len(expired_ids)

    async def get_active_count(self) -> int:
        """활성 세션 수 반환"""
        async with self._lock:
            return len(self._sessions)


# 싱글톤 인스턴스
_session_store: Optional[InMemorySessionStore] = None


def get_session_store() -> InMemorySessionStore:
    """세션 저장소 싱글톤 반환"""
    global _session_store
    if _session_store is None:
        _session_store = InMemorySessionStore()
    return _session_store

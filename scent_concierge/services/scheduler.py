"""
스케줄러 서비스
APScheduler를 사용하여 만료 세션 정리 작업 실행
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from scent_concierge.config import get_settings

logger = logging.getLogger(__name__)


class SchedulerService:
    """스케줄러 서비스"""

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self):
        """스케줄러 시작"""
        if self._is_running:
            logger.warning("스케줄러가 이미 실행 중입니다")
            return

        settings = get_settings()

        # 만료 세션 정리
        self.scheduler.add_job(
            self._cleanup_expired_sessions,
            trigger=IntervalTrigger(minutes=settings.session_cleanup_interval_minutes),
            id="cleanup_expired_sessions",
            name="만료 세션 정리",
            replace_existing=True,
        )

        self.scheduler.start()
        self._is_running = True
        logger.info("스케줄러 시작됨")

    def stop(self):
        """스케줄러 중지"""
        if not self._is_running:
            return

        self.scheduler.shutdown(wait=False)
        self._is_running = False
        logger.info("스케줄러 중지됨")

    async def _cleanup_expired_sessions(self):
        """만료 세션 정리 실행"""
        try:
            from scent_concierge.services.session_store import get_session_store

            removed = await get_session_store().clear_expired()
            logger.info(f"만료 세션 정리 완료: {removed}개")
        except Exception as e:
            logger.error(f"만료 세션 정리 중 오류: {e}")


# 싱글톤 인스턴스
_scheduler: Optional[SchedulerService] = None


def get_scheduler() -> SchedulerService:
    """스케줄러 싱글톤 반환"""
    global _scheduler
    if _scheduler is None:
        _scheduler = SchedulerService()
    return _scheduler

"""
FastAPI 메인 애플리케이션
Scent Concierge 향수 추천 음성 어시스턴트 백엔드
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scent_concierge import __version__
from scent_concierge.api import catalog, chat, health, voice
from scent_concierge.config import get_settings
from scent_concierge.services.catalog_store import init_catalog
from scent_concierge.services.scheduler import get_scheduler

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """루트 로거 설정"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """애플리케이션 생명주기 관리"""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Scent Concierge 서버 시작 (LLM: {settings.llm_provider})")

    # 카탈로그 로드 (실패 시 서버 시작 중단)
    init_catalog()

    # 스케줄러 시작
    try:
        get_scheduler().start()
    except Exception as e:
        logger.warning(f"스케줄러 시작 실패: {e}")

    yield

    # 종료 시 정리
    get_scheduler().stop()
    logger.info("Scent Concierge 서버 종료")


def create_app() -> FastAPI:
    """FastAPI 앱 팩토리"""
    settings = get_settings()

    app = FastAPI(
        title="Scent Concierge",
        description="음성 기반 향수 추천 어시스턴트 API - 대화형 검색, 카탈로그 조회, 음성 채널",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(chat.router, prefix="/api", tags=["Chat"])
    app.include_router(catalog.router, prefix="/api", tags=["Catalog"])
    app.include_router(voice.router, prefix="/api", tags=["Voice"])

    # 컨테이너 healthcheck용 루트 레벨 헬스체크
    @app.get("/health")
    async def root_health():
        return {"status": "ok"}

    return app


# 앱 인스턴스
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "scent_concierge.main:app",
        host=settings.api_host or "0.0.0.0",
        port=settings.server_port,
        reload=settings.debug,
    )

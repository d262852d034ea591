"""
환경변수 설정 모듈
Pydantic Settings를 사용하여 환경변수를 관리합니다.
모든 설정은 .env 파일에서 가져옵니다.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CATALOG_PATH = PACKAGE_DIR / "data" / "perfumes.json"
DEFAULT_POLICY_PATH = PACKAGE_DIR / "prompts" / "perfume_consultant.md"

DEFAULT_LLM_MODELS = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
}


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========== LLM 제공자 설정 ==========
    llm_provider: Literal["gemini", "openai"] = "gemini"
    google_api_key: str = ""
    openai_api_key: str = ""
    llm_model: str = ""
    llm_temperature: float = 0.7

    @property
    def resolved_llm_model(self) -> str:
        """모델명 미지정 시 제공자별 기본 모델"""
        return self.llm_model or DEFAULT_LLM_MODELS[self.llm_provider]

    @property
    def llm_configured(self) -> bool:
        """선택된 LLM 제공자의 API 키 설정 여부"""
        if self.llm_provider == "openai":
            return bool(self.openai_api_key)
        return bool(self.google_api_key)

    # ========== ElevenLabs 음성 설정 ==========
    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"  # Rachel
    elevenlabs_tts_model: str = "eleven_multilingual_v2"
    elevenlabs_stt_model: str = "scribe_v1"
    elevenlabs_timeout_seconds: float = 30.0

    # ========== 카탈로그/정책 설정 ==========
    catalog_path: str = ""
    assistant_policy_path: str = ""

    @property
    def resolved_catalog_path(self) -> Path:
        """카탈로그 파일 경로 (미지정 시 패키지 기본 데이터)"""
        return Path(self.catalog_path) if self.catalog_path else DEFAULT_CATALOG_PATH

    @property
    def resolved_policy_path(self) -> Path:
        """어시스턴트 정책 문서 경로 (미지정 시 패키지 기본 정책)"""
        return (
            Path(self.assistant_policy_path)
            if self.assistant_policy_path
            else DEFAULT_POLICY_PATH
        )

    # ========== 음성 세션 설정 ==========
    min_recording_ms: int = 300
    voice_error_dismiss_seconds: int = 5

    # ========== 세션 설정 ==========
    session_ttl_minutes: int = 60
    session_cleanup_interval_minutes: int = 10

    # ========== 서버 설정 ==========
    api_host: str = ""
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    @property
    def server_port(self) -> int:
        """서버 포트"""
        return self.port

    # ========== CORS 설정 ==========
    cors_origins: str = ""

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins를 리스트로 변환"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """캐싱된 설정 인스턴스 반환"""
    return Settings()

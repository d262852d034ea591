"""
에러 정의
설정/외부 서비스/카탈로그/디바이스 오류 분류
"""
from typing import Optional


class ScentConciergeError(Exception):
    """애플리케이션 공통 기본 에러"""

    pass


class ConfigurationError(ScentConciergeError, ValueError):
    """서비스 자격 증명(API 키 등) 누락"""

    pass


class ServiceError(ScentConciergeError):
    """외부 서비스(LLM/TTS/STT) 호출 실패"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogValidationError(ScentConciergeError):
    """카탈로그 데이터 스키마 위반 (로드 시점에 치명적)"""

    pass


class CapabilityError(ScentConciergeError):
    """마이크/코덱 미지원 또는 권한 거부"""

    pass

"""
카탈로그 저장소
정적 향수 데이터를 한 번 로드하여 읽기 전용으로 제공
"""
import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from scent_concierge.config import get_settings
from scent_concierge.exceptions import CatalogValidationError
from scent_concierge.models.catalog import Catalog

logger = logging.getLogger(__name__)


def load_catalog(path: Union[str, Path]) -> Catalog:
    """
    카탈로그 문서 로드 및 검증

    스키마 위반(필수 필드 누락, 잘못된 enum 값, 빈 탑 노트, 중복 ID)은
    검색 시점이 아니라 로드 시점에 거부합니다.

    Args:
        path: JSON 문서 경로 ({items, scentFamilies, occasions?, moods?, seasons?})

    Returns:
        Catalog

    Raises:
        CatalogValidationError: 파일이 없거나 형식이 잘못된 경우
    """
    path = Path(path)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CatalogValidationError(f"카탈로그 파일을 찾을 수 없습니다: {path}") from e
    except json.JSONDecodeError as e:
        raise CatalogValidationError(f"카탈로그 JSON 파싱 실패: {e}") from e

    return parse_catalog(raw)


def parse_catalog(raw: object) -> Catalog:
    """파싱된 JSON 객체를 Catalog로 검증"""
    if not isinstance(raw, dict):
        raise CatalogValidationError("카탈로그 문서는 객체여야 합니다")
    if "items" not in raw or "scentFamilies" not in raw:
        raise CatalogValidationError("카탈로그 문서에 items와 scentFamilies가 필요합니다")

    try:
        catalog = Catalog.model_validate(raw)
    except ValidationError as e:
        raise CatalogValidationError(f"카탈로그 스키마 위반: {e}") from e

    known_families = {family.name for family in catalog.scent_families}
    unknown = {item.scent_family for item in catalog.items} - known_families
    if unknown:
        # 분류에 없는 계열은 키워드 매칭만 불가 (허용)
        logger.warning(f"[Catalog] 분류에 없는 향 계열: {sorted(unknown)}")

    return catalog


# 싱글톤 인스턴스
_catalog: Optional[Catalog] = None


def init_catalog(path: Optional[Union[str, Path]] = None) -> Catalog:
    """카탈로그 로드 후 싱글톤으로 등록 (애플리케이션 시작 시 1회)"""
    global _catalog

    if path is None:
        path = get_settings().resolved_catalog_path

    _catalog = load_catalog(path)
    logger.info(
        f"[Catalog] 로드 완료: 상품 {len(_catalog.items)}개, "
        f"향 계열 {len(_catalog.scent_families)}개 ({path})"
    )
    return _catalog


def get_catalog() -> Catalog:
    """카탈로그 싱글톤 반환"""
    if _catalog is None:
        return init_catalog()
    return _catalog

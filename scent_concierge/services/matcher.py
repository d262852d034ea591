"""
향수 검색 엔진
SearchParams를 카탈로그 필터 패스로 변환하여 매칭 상품을 반환
"""
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from scent_concierge.models.catalog import Catalog, CatalogItem
from scent_concierge.models.search import SearchParams, SearchResult
from scent_concierge.services.catalog_store import get_catalog

logger = logging.getLogger(__name__)

Predicate = Callable[[CatalogItem], bool]


def _overlaps(term: str, candidates: Iterable[str]) -> bool:
    """term과 후보 중 하나가 양방향 부분 문자열 관계인지 (대소문자 무시)"""
    for candidate in candidates:
        candidate = candidate.lower()
        if candidate and (term in candidate or candidate in term):
            return True
    return False


def _scent_type_filter(term: str, catalog: Catalog) -> Predicate:
    """scentType: 자체 scentType → 계열 키워드 → 설명 → 태그 순으로 확인"""
    term = term.lower()

    def predicate(item: CatalogItem) -> bool:
        if _overlaps(term, [item.scent_type]):
            return True
        family = catalog.family(item.scent_family)
        if family and _overlaps(term, family.keywords):
            return True
        if term in item.description.lower():
            return True
        return _overlaps(term, item.tags)

    return predicate


def _scent_family_filter(name: str) -> Predicate:
    needle = name.lower()
    return lambda item: needle in item.scent_family.lower()


def _exact_filter(value: str, attribute: str) -> Predicate:
    """저장된 분류 값과 정확히 일치 (priceRange, intensity)"""
    expected = value.lower()
    return lambda item: getattr(item, attribute).lower() == expected


def _notes_filter(notes: List[str]) -> Predicate:
    wanted = [note.lower() for note in notes]

    def predicate(item: CatalogItem) -> bool:
        item_notes = item.notes.all_notes()
        return any(_overlaps(note, item_notes) for note in wanted)

    return predicate


def _gender_filter(gender: str) -> Predicate:
    # unisex 상품은 모든 성별 필터를 통과
    expected = gender.lower()
    return lambda item: item.gender == expected or item.gender == "unisex"


def _tags_filter(terms: List[str]) -> Predicate:
    """tags/occasion/mood/season 공통: 태그와 양방향 부분 일치"""
    wanted = [term.lower() for term in terms]
    return lambda item: any(_overlaps(term, item.tags) for term in wanted)


def _query_filter(query: str) -> Predicate:
    # 단어 중 하나라도 포함되면 통과 (OR, 재현율 우선)
    words = query.lower().split()

    def predicate(item: CatalogItem) -> bool:
        text = item.searchable_text()
        return any(word in text for word in words)

    return predicate


def build_filters(params: SearchParams, catalog: Catalog) -> List[Tuple[str, Predicate]]:
    """
    파라미터별 필터 패스 생성

    값이 없는 필드는 패스를 만들지 않습니다 (항등 변환).
    자유 텍스트 query는 항상 마지막 패스입니다.
    """
    filters: List[Tuple[str, Predicate]] = []

    if params.scent_type:
        filters.append(("scentType", _scent_type_filter(params.scent_type, catalog)))
    if params.scent_family:
        filters.append(("scentFamily", _scent_family_filter(params.scent_family)))
    if params.price_range:
        filters.append(("priceRange", _exact_filter(params.price_range, "price_range")))
    if params.notes:
        filters.append(("notes", _notes_filter(params.notes)))
    if params.gender:
        filters.append(("gender", _gender_filter(params.gender)))
    if params.tags:
        filters.append(("tags", _tags_filter(params.tags)))
    if params.occasion:
        filters.append(("occasion", _tags_filter([params.occasion])))
    if params.mood:
        filters.append(("mood", _tags_filter([params.mood])))
    if params.season:
        filters.append(("season", _tags_filter([params.season])))
    if params.intensity:
        filters.append(("intensity", _exact_filter(params.intensity, "intensity")))
    if params.query and params.query.split():
        filters.append(("query", _query_filter(params.query)))

    return filters


def search(params: Optional[SearchParams] = None, catalog: Optional[Catalog] = None) -> SearchResult:
    """
    향수 검색

    전체 카탈로그에서 시작해 필터 패스를 순서대로 적용합니다.
    결과는 카탈로그 원래 순서를 유지하며 재정렬/개수 제한을 하지 않습니다.

    Args:
        params: 검색 파라미터 (없으면 전체 카탈로그)
        catalog: 검색 대상 카탈로그 (없으면 싱글톤)

    Returns:
        SearchResult
    """
    if params is None:
        params = SearchParams()
    if catalog is None:
        catalog = get_catalog()

    results: List[CatalogItem] = list(catalog.items)

    for name, predicate in build_filters(params, catalog):
        results = [item for item in results if predicate(item)]
        logger.debug(f"[Matcher] {name} 필터 후 {len(results)}개")

    logger.info(f"[Matcher] 검색 완료: {params.to_echo()} → {len(results)}개")

    return SearchResult(
        items=results,
        count=len(results),
        search_params=params.to_echo(),
    )

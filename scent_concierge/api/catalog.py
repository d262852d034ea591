"""
카탈로그 엔드포인트
향수 컬렉션 조회 및 직접 검색
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from scent_concierge.models.catalog import CatalogItem, ScentFamily
from scent_concierge.models.search import SearchParams, SearchResult
from scent_concierge.services import matcher
from scent_concierge.services.catalog_store import get_catalog

router = APIRouter()


class FacetsResponse(BaseModel):
    """검색 필터 후보 값"""

    scent_types: List[str]
    tags: List[str]
    occasions: List[str]
    moods: List[str]
    seasons: List[str]


@router.get("/perfumes", response_model=List[CatalogItem])
async def list_perfumes(
    family: Optional[str] = Query(None, description="향 계열 필터 (부분 일치)"),
) -> List[CatalogItem]:
    """전체 컬렉션 조회 (카탈로그 순서)"""
    catalog = get_catalog()
    if family:
        return catalog.items_in_family(family)
    return list(catalog.items)


@router.get("/perfumes/{perfume_id}", response_model=CatalogItem)
async def get_perfume(perfume_id: str) -> CatalogItem:
    """향수 상세 조회"""
    item = get_catalog().get_item(perfume_id)
    if item is None:
        raise HTTPException(status_code=404, detail="향수를 찾을 수 없습니다")
    return item


@router.post("/perfumes/search", response_model=SearchResult)
async def search_perfumes(params: SearchParams) -> SearchResult:
    """검색 파라미터로 카탈로그 직접 검색 (LLM 미사용)"""
    return matcher.search(params, get_catalog())


@router.get("/scent-families", response_model=List[ScentFamily])
async def list_scent_families() -> List[ScentFamily]:
    """향 계열 분류 조회"""
    return list(get_catalog().scent_families)


@router.get("/facets", response_model=FacetsResponse)
async def get_facets() -> FacetsResponse:
    """검색 필터 후보 값 조회"""
    catalog = get_catalog()
    return FacetsResponse(
        scent_types=catalog.scent_types(),
        tags=catalog.tags(),
        occasions=list(catalog.occasions),
        moods=list(catalog.moods),
        seasons=list(catalog.seasons),
    )

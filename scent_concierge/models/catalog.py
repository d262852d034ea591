"""
카탈로그 모델 정의
향수 상품 및 향 계열(scent family) 분류 관련 모델
"""
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

PriceRange = Literal["budget", "mid", "luxury"]
Gender = Literal["masculine", "feminine", "unisex"]
Intensity = Literal["light", "moderate", "strong"]


class PerfumeNotes(BaseModel):
    """향 노트 (탑/미들/베이스)"""

    model_config = ConfigDict(frozen=True)

    top: Tuple[str, ...] = Field(..., min_length=1, description="탑 노트")
    middle: Tuple[str, ...] = Field(default=(), description="미들 노트")
    base: Tuple[str, ...] = Field(default=(), description="베이스 노트")

    def all_notes(self) -> List[str]:
        """탑/미들/베이스 노트 전체 (순서 유지)"""
        return [*self.top, *self.middle, *self.base]


class CatalogItem(BaseModel):
    """향수 상품 모델"""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "ocean-breeze",
                "name": "Ocean Breeze",
                "brand": "Maison Littoral",
                "scentType": "ocean",
                "scentFamily": "Fresh/Aquatic",
                "notes": {
                    "top": ["sea salt", "bergamot"],
                    "middle": ["marine accord", "jasmine"],
                    "base": ["driftwood", "white musk"],
                },
                "price": 68,
                "priceRange": "budget",
                "gender": "unisex",
                "intensity": "light",
                "description": "A crisp marine fragrance.",
                "tags": ["beach", "summer", "fresh"],
                "imageUrl": "/images/perfumes/ocean-breeze.jpg",
            }
        },
    )

    id: str = Field(..., min_length=1, description="상품 고유 ID")
    name: str = Field(..., min_length=1, description="상품명")
    brand: str = Field(..., description="브랜드명")
    scent_type: str = Field(..., alias="scentType", description="대표 향 설명 (자유 형식)")
    scent_family: str = Field(..., alias="scentFamily", description="향 계열")
    notes: PerfumeNotes = Field(..., description="향 노트")
    price: float = Field(..., ge=0, description="가격 (통화 무관)")
    price_range: PriceRange = Field(..., alias="priceRange", description="가격대 분류")
    gender: Gender = Field(..., description="성별 성향")
    intensity: Intensity = Field(..., description="향 강도")
    description: str = Field(default="", description="상품 설명")
    tags: Tuple[str, ...] = Field(default=(), description="상황/무드/계절/스타일 태그")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="이미지 URL")

    def searchable_text(self) -> str:
        """자유 텍스트 검색용 통합 문자열 (소문자)"""
        return " ".join(
            [
                self.name,
                self.brand,
                self.scent_type,
                self.scent_family,
                self.description,
                *self.notes.all_notes(),
                *self.tags,
            ]
        ).lower()


class ScentFamily(BaseModel):
    """향 계열 및 연관 키워드"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="계열 이름 (예: Woody)")
    keywords: Tuple[str, ...] = Field(default=(), description="퍼지 매칭용 키워드")


class Catalog(BaseModel):
    """읽기 전용 카탈로그 (상품 + 향 계열 분류 + 보조 목록)"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    items: Tuple[CatalogItem, ...] = Field(default=())
    scent_families: Tuple[ScentFamily, ...] = Field(default=(), alias="scentFamilies")
    occasions: Tuple[str, ...] = Field(default=())
    moods: Tuple[str, ...] = Field(default=())
    seasons: Tuple[str, ...] = Field(default=())

    @model_validator(mode="after")
    def _check_unique(self) -> "Catalog":
        """ID 및 계열 이름 중복 검사"""
        seen_ids = set()
        for item in self.items:
            if item.id in seen_ids:
                raise ValueError(f"중복된 상품 ID: {item.id}")
            seen_ids.add(item.id)

        seen_families = set()
        for family in self.scent_families:
            if family.name in seen_families:
                raise ValueError(f"중복된 향 계열: {family.name}")
            seen_families.add(family.name)

        return self

    def __len__(self) -> int:
        return len(self.items)

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        """ID로 상품 조회"""
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def family(self, name: str) -> Optional[ScentFamily]:
        """이름이 정확히 일치하는 향 계열 조회"""
        for family in self.scent_families:
            if family.name == name:
                return family
        return None

    def items_in_family(self, family_name: str) -> List[CatalogItem]:
        """계열 이름(부분 일치, 대소문자 무시)으로 상품 목록 조회"""
        needle = family_name.lower()
        return [item for item in self.items if needle in item.scent_family.lower()]

    def scent_types(self) -> List[str]:
        """고유 scentType 목록 (카탈로그 순서)"""
        return list(dict.fromkeys(item.scent_type for item in self.items))

    def tags(self) -> List[str]:
        """고유 태그 목록 (정렬)"""
        return sorted({tag for item in self.items for tag in item.tags})

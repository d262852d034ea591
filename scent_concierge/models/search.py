"""
검색 모델 정의
searchPerfumes 도구 파라미터 및 검색 결과 모델
"""
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from scent_concierge.models.catalog import CatalogItem


class SearchParams(BaseModel):
    """
    향수 검색 파라미터

    모든 필드는 선택값이며, 값이 없으면 해당 속성에 제약이 없다는 의미입니다.
    필드 간에는 AND, 한 필드 내 여러 후보 값은 OR로 결합됩니다.

    LLM이 생성한 인자는 신뢰하지 않습니다: 알 수 없는 키는 무시하고,
    타입이 맞지 않는 값은 버립니다.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    scent_type: Optional[str] = Field(None, alias="scentType", description="향 종류 (ocean, floral 등)")
    scent_family: Optional[str] = Field(None, alias="scentFamily", description="향 계열")
    price_range: Optional[str] = Field(None, alias="priceRange", description="가격대 (budget/mid/luxury)")
    notes: Optional[List[str]] = Field(None, description="특정 노트")
    gender: Optional[str] = Field(None, description="성별 성향")
    query: Optional[str] = Field(None, description="자유 텍스트 검색어")
    tags: Optional[List[str]] = Field(None, description="일반 태그")
    occasion: Optional[str] = Field(None, description="상황 (date night, office 등)")
    mood: Optional[str] = Field(None, description="무드 (sexy, cozy 등)")
    season: Optional[str] = Field(None, description="계절")
    intensity: Optional[str] = Field(None, description="강도 (light/moderate/strong)")

    @model_validator(mode="before")
    @classmethod
    def _drop_non_mapping(cls, data: Any) -> Any:
        """객체가 아닌 인자는 빈 파라미터로 취급"""
        if data is None or not isinstance(data, Mapping):
            return {}
        return data

    @field_validator(
        "scent_type",
        "scent_family",
        "price_range",
        "gender",
        "query",
        "occasion",
        "mood",
        "season",
        "intensity",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        """문자열만 허용 (공백 제거, 빈 값/잘못된 타입은 제거)"""
        if not isinstance(value, str):
            return None
        value = value.strip()
        return value or None

    @field_validator("notes", "tags", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Optional[List[str]]:
        """문자열 리스트만 허용 (단일 문자열은 리스트로 변환)"""
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return None
        cleaned = [v.strip() for v in value if isinstance(v, str) and v.strip()]
        return cleaned or None

    @classmethod
    def from_tool_arguments(cls, arguments: Any) -> "SearchParams":
        """LLM 도구 호출 인자를 검증/정규화하여 SearchParams 생성"""
        return cls.model_validate(arguments)

    def is_empty(self) -> bool:
        """설정된 제약이 하나도 없는지 여부"""
        return not self.to_echo()

    def to_echo(self) -> Dict[str, Any]:
        """응답에 되돌려줄 파라미터 (camelCase, 값이 있는 필드만)"""
        return self.model_dump(by_alias=True, exclude_none=True)


class SearchResult(BaseModel):
    """검색 결과 (카탈로그 순서 유지, 재정렬 없음)"""

    model_config = ConfigDict(populate_by_name=True)

    items: List[CatalogItem] = Field(default_factory=list, description="매칭된 상품")
    count: int = Field(..., ge=0, description="결과 수")
    search_params: Dict[str, Any] = Field(
        default_factory=dict, alias="searchParams", description="적용된 검색 파라미터"
    )

    @model_validator(mode="after")
    def _check_count(self) -> "SearchResult":
        """count와 items 길이 일치 검사"""
        if self.count != len(self.items):
            raise ValueError("count는 items 길이와 같아야 합니다")
        return self

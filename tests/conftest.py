"""
pytest 공통 fixture
"""
from typing import Any, Dict, List, Sequence, Union

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage, BaseMessage

from scent_concierge.main import app
from scent_concierge.models.catalog import Catalog
from scent_concierge.services.catalog_store import parse_catalog
from scent_concierge.services.llm_provider import LLMProvider


SMALL_CATALOG: Dict[str, Any] = {
    "scentFamilies": [
        {"name": "Fresh/Aquatic", "keywords": ["ocean", "marine", "aquatic", "sea"]},
        {"name": "Floral", "keywords": ["rose", "jasmine", "floral"]},
        {"name": "Woody", "keywords": ["wood", "oud", "cedar", "sandalwood"]},
    ],
    "items": [
        {
            "id": "sea-salt",
            "name": "Sea Salt",
            "brand": "Littoral",
            "scentType": "ocean",
            "scentFamily": "Fresh/Aquatic",
            "notes": {"top": ["sea salt", "lemon"], "middle": ["marine accord"], "base": ["driftwood"]},
            "price": 55,
            "priceRange": "budget",
            "gender": "unisex",
            "intensity": "light",
            "description": "A breezy coastal splash.",
            "tags": ["beach", "summer"],
        },
        {
            "id": "rose-garden",
            "name": "Rose Garden",
            "brand": "Maison Petale",
            "scentType": "rose",
            "scentFamily": "Floral",
            "notes": {"top": ["bergamot"], "middle": ["rose", "peony"], "base": ["musk"]},
            "price": 65,
            "priceRange": "budget",
            "gender": "feminine",
            "intensity": "moderate",
            "description": "Dewy petals picked at dawn.",
            "tags": ["romantic", "spring", "date night"],
        },
        {
            "id": "oud-royale",
            "name": "Oud Royale",
            "brand": "Atelier Noir",
            "scentType": "oud",
            "scentFamily": "Woody",
            "notes": {"top": ["saffron"], "middle": ["oud"], "base": ["amber", "leather"]},
            "price": 240,
            "priceRange": "luxury",
            "gender": "masculine",
            "intensity": "strong",
            "description": "Smoky resin for formal evenings.",
            "tags": ["evening", "winter", "luxurious"],
        },
    ],
    "occasions": ["date night", "office"],
    "moods": ["romantic", "bold"],
    "seasons": ["spring", "summer", "fall", "winter"],
}


class ScriptedLLMProvider(LLMProvider):
    """미리 정한 응답을 순서대로 돌려주는 LLM 제공자 (네트워크 미사용)"""

    def __init__(self, responses: Sequence[Union[AIMessage, Exception]]) -> None:
        self.responses = list(responses)
        self.calls: List[List[BaseMessage]] = []

    def get_chat_model(self, **kwargs: Any):
        raise NotImplementedError("테스트용 제공자는 채팅 모델을 만들지 않습니다")

    async def invoke_with_tools(self, messages, tools, **kwargs: Any) -> AIMessage:
        self.calls.append(list(messages))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def search_call(arguments: Dict[str, Any], call_id: str = "call_1") -> AIMessage:
    """searchPerfumes 도구 호출 응답"""
    return AIMessage(
        content="",
        tool_calls=[{"name": "searchPerfumes", "args": arguments, "id": call_id}],
    )


@pytest.fixture
def client():
    """테스트 클라이언트"""
    return TestClient(app)


@pytest.fixture
def small_catalog() -> Catalog:
    """3개 상품 카탈로그"""
    return parse_catalog(SMALL_CATALOG)


@pytest.fixture
def scripted_llm():
    """ScriptedLLMProvider 팩토리"""
    return ScriptedLLMProvider


@pytest.fixture
def make_search_call():
    """searchPerfumes 도구 호출 응답 팩토리"""
    return search_call

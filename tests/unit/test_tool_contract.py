"""
도구 호출 계약 및 텍스트 유틸리티 유닛 테스트
"""
import pytest

from scent_concierge.agents.tool_contract import (
    SEARCH_PERFUMES_TOOL,
    SEARCH_PERFUMES_TOOL_NAME,
    TOOL_RESULT_FIELDS,
    load_policy,
)
from scent_concierge.utils.text_parser import format_search_summary, to_speech_text


class TestSearchPerfumesTool:
    """searchPerfumes 스키마 테스트"""

    def test_declares_all_parameters(self):
        properties = SEARCH_PERFUMES_TOOL["function"]["parameters"]["properties"]

        assert SEARCH_PERFUMES_TOOL["function"]["name"] == SEARCH_PERFUMES_TOOL_NAME
        assert set(properties) == {
            "scentType",
            "scentFamily",
            "priceRange",
            "notes",
            "gender",
            "occasion",
            "mood",
            "season",
            "intensity",
            "tags",
            "query",
        }

    @pytest.mark.parametrize(
        "field,values",
        [
            ("priceRange", ["budget", "mid", "luxury"]),
            ("gender", ["masculine", "feminine", "unisex"]),
            ("season", ["spring", "summer", "fall", "winter"]),
            ("intensity", ["light", "moderate", "strong"]),
        ],
    )
    def test_enumerations(self, field, values):
        properties = SEARCH_PERFUMES_TOOL["function"]["parameters"]["properties"]

        assert properties[field]["enum"] == values

    def test_no_required_parameters(self):
        assert "required" not in SEARCH_PERFUMES_TOOL["function"]["parameters"]

    def test_result_projection_fields(self):
        assert TOOL_RESULT_FIELDS == ("id", "name", "brand", "scentType", "price", "description")


class TestPolicy:
    """행동 정책 로딩 테스트"""

    def test_packaged_policy(self):
        policy = load_policy()

        assert "searchPerfumes" in policy

    def test_custom_policy_path(self, tmp_path):
        path = tmp_path / "policy.md"
        path.write_text("Be brief.\n", encoding="utf-8")

        assert load_policy(path) == "Be brief."


class TestSpeechText:
    """TTS용 텍스트 정리 테스트"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("**Ocean Breeze** is *lovely*", "Ocean Breeze is lovely"),
            ("## Top picks\nTry it", "Top picks\nTry it"),
            ("Use `code` here", "Use code here"),
            ("See [Ocean Breeze](https://example.com/p/1)", "See Ocean Breeze"),
            ("Plain sentence.", "Plain sentence."),
        ],
    )
    def test_strips_markdown(self, text, expected):
        assert to_speech_text(text) == expected


class TestSearchSummary:
    """검색 결과 요약 문장 테스트"""

    def test_empty(self):
        assert format_search_summary([]).startswith("I couldn't find any perfumes")

    def test_single(self, small_catalog):
        assert format_search_summary(small_catalog.items[:1]) == (
            "I found 1 perfume that match your preferences!"
        )

    def test_plural(self, small_catalog):
        assert format_search_summary(small_catalog.items) == (
            "I found 3 perfumes that match your preferences!"
        )

"""
도구 호출 계약
LLM이 호출할 수 있는 searchPerfumes 함수 스키마와 행동 정책 로딩
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

from scent_concierge.config import get_settings

logger = logging.getLogger(__name__)

SEARCH_PERFUMES_TOOL_NAME = "searchPerfumes"

SEARCH_PERFUMES_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": SEARCH_PERFUMES_TOOL_NAME,
        "description": (
            "Search for perfumes based on scent type, price range, specific notes, occasion, "
            "mood, season, or other criteria. Use this when the user asks for perfume "
            "recommendations or wants to find specific types of fragrances."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "scentType": {
                    "type": "string",
                    "description": (
                        "The type of scent (e.g., ocean, floral, woody, citrus, vanilla, rose, "
                        "sandalwood, fresh, green, spicy, amber, musk, leather, fruity, coffee, "
                        "chocolate, caramel, honey, lavender, cherry, peach, coconut, rain, "
                        "incense, tobacco, whiskey). Extract from user description."
                    ),
                },
                "scentFamily": {
                    "type": "string",
                    "description": (
                        "The broader scent family category (Fresh/Aquatic, Floral, Woody, "
                        "Oriental/Amber, Fresh/Citrus, Fresh/Green, Musk, Fruity, Leather, "
                        "Powdery, Gourmand)"
                    ),
                },
                "priceRange": {
                    "type": "string",
                    "enum": ["budget", "mid", "luxury"],
                    "description": "Price category: budget (under $70), mid ($70-$150), luxury (over $150)",
                },
                "notes": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Specific fragrance notes to search for (e.g., bergamot, sandalwood, vanilla, rose)",
                },
                "gender": {
                    "type": "string",
                    "enum": ["masculine", "feminine", "unisex"],
                    "description": "Gender preference for the fragrance",
                },
                "occasion": {
                    "type": "string",
                    "description": (
                        "The occasion or setting (e.g., date night, office, wedding, party, gym, "
                        "beach, vacation, everyday, formal, casual, meeting, club, night out, brunch)"
                    ),
                },
                "mood": {
                    "type": "string",
                    "description": (
                        "The mood or vibe (e.g., sexy, romantic, confident, elegant, playful, cozy, "
                        "fresh, clean, mysterious, bold, sophisticated, calm, energizing, seductive)"
                    ),
                },
                "season": {
                    "type": "string",
                    "enum": ["spring", "summer", "fall", "winter"],
                    "description": "Season the perfume is best suited for",
                },
                "intensity": {
                    "type": "string",
                    "enum": ["light", "moderate", "strong"],
                    "description": "How strong/intense the fragrance should be",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": (
                        "General tags to search for (e.g., gourmand, tropical, zen, vintage, "
                        "sporty, professional, unique)"
                    ),
                },
                "query": {
                    "type": "string",
                    "description": "Free text search query for general searches",
                },
            },
        },
    },
}

# 도구 결과로 LLM에 돌려줄 상품 필드 (전체 레코드 대신 축약)
TOOL_RESULT_FIELDS = ("id", "name", "brand", "scentType", "price", "description")


@lru_cache(maxsize=8)
def _read_policy(path: Path) -> str:
    text = path.read_text(encoding="utf-8").strip()
    logger.info(f"[ToolContract] 정책 문서 로드: {path} ({len(text)}자)")
    return text


def load_policy(path: Optional[Union[str, Path]] = None) -> str:
    """
    어시스턴트 행동 정책(시스템 프롬프트) 로드

    정책은 코드가 아닌 데이터입니다. ASSISTANT_POLICY_PATH로 다른 문서를
    지정하면 오케스트레이터 수정 없이 교체됩니다.

    Args:
        path: 정책 문서 경로 (없으면 설정값)

    Returns:
        정책 문서 텍스트
    """
    if path is None:
        path = get_settings().resolved_policy_path
    return _read_policy(Path(path).resolve())

"""
텍스트 파싱 유틸리티
TTS용 마크다운 제거 및 검색 결과 요약 문장 생성
"""
import re
from typing import Sequence

from scent_concierge.models.catalog import CatalogItem

# [라벨](url) → 라벨
_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_HEADING_PATTERN = re.compile(r"#{1,6}\s")


def to_speech_text(text: str) -> str:
    """
    음성 합성용 텍스트 정리

    TTS 엔진이 서식 기호를 읽지 않도록 강조(**, *), 제목(#), 백틱,
    링크 문법을 제거합니다.

    Args:
        text: 원문 텍스트 (마크다운 포함 가능)

    Returns:
        서식 기호가 제거된 텍스트
    """
    clean = text.replace("**", "").replace("*", "")
    clean = _HEADING_PATTERN.sub("", clean)
    clean = clean.replace("`", "")
    clean = _LINK_PATTERN.sub(r"\1", clean)
    return clean


def format_search_summary(items: Sequence[CatalogItem]) -> str:
    """검색 결과 요약 문장 (LLM 요약이 비어 있을 때 대체 응답)"""
    if not items:
        return "I couldn't find any perfumes matching your criteria. Would you like to try a different search?"

    count = len(items)
    noun = "perfume" if count == 1 else "perfumes"
    return f"I found {count} {noun} that match your preferences!"

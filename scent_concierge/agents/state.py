"""
LangGraph 대화 상태 정의
한 번의 process_message 실행 동안 노드 간에 공유되는 상태
"""
from typing import Any, Dict, Optional, TypedDict

from langchain_core.messages import AIMessage

from scent_concierge.models.search import SearchResult


class ConversationState(TypedDict, total=False):
    """LangGraph 대화 상태"""

    # 입력
    user_text: str

    # 1차 LLM 응답
    response: Optional[AIMessage]
    tool_call: Optional[Dict[str, Any]]  # searchPerfumes 호출 요청 (없으면 None)

    # 검색 결과
    search_result: Optional[SearchResult]

    # 최종 응답 텍스트
    reply_text: Optional[str]

    # 메타데이터
    processing_step: str

"""
대화 오케스트레이터
LangGraph 기반 도구 호출 흐름 (LLM → searchPerfumes → 요약) 관리
"""
import json
import logging
import uuid
from typing import Any, Dict, List, Literal, Optional

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph

from scent_concierge.agents.state import ConversationState
from scent_concierge.agents.tool_contract import (
    SEARCH_PERFUMES_TOOL,
    SEARCH_PERFUMES_TOOL_NAME,
    TOOL_RESULT_FIELDS,
    load_policy,
)
from scent_concierge.exceptions import ConfigurationError
from scent_concierge.models.catalog import Catalog
from scent_concierge.models.response import OrchestratorReply
from scent_concierge.models.search import SearchParams, SearchResult
from scent_concierge.models.session import ChatSession, Turn
from scent_concierge.services.catalog_store import get_catalog
from scent_concierge.services.llm_provider import LLMProvider, get_llm_provider
from scent_concierge.services.matcher import search
from scent_concierge.utils.text_parser import format_search_summary

logger = logging.getLogger(__name__)

CLARIFYING_PROMPT = (
    "I'd be happy to help you find the perfect perfume! "
    "Could you tell me more about what kind of scent you're looking for?"
)
API_KEY_APOLOGY = (
    "I'm having trouble connecting to my knowledge base. "
    "Please check that the API key is configured correctly."
)
SERVICE_APOLOGY = (
    "I apologize, but I encountered an issue processing your request. "
    "Could you please try again?"
)


def turns_to_messages(turns: List[Turn]) -> List[BaseMessage]:
    """대화 이력(Turn)을 LangChain 메시지로 변환"""
    messages: List[BaseMessage] = []

    for turn in turns:
        if turn.kind == "tool_call":
            messages.append(
                AIMessage(
                    content="",
                    tool_calls=[
                        {
                            "name": turn.tool_name,
                            "args": turn.arguments,
                            "id": turn.tool_call_id,
                        }
                    ],
                )
            )
        elif turn.kind == "tool_result":
            messages.append(
                ToolMessage(
                    content=json.dumps(turn.payload, ensure_ascii=False),
                    tool_call_id=turn.tool_call_id,
                    name=turn.tool_name,
                )
            )
        elif turn.role == "user":
            messages.append(HumanMessage(content=turn.text or ""))
        else:
            messages.append(AIMessage(content=turn.text or ""))

    return messages


def message_text(message: Optional[BaseMessage]) -> str:
    """응답 메시지에서 텍스트만 추출 (Gemini는 content가 파트 리스트일 수 있음)"""
    if message is None:
        return ""

    content = message.content
    if isinstance(content, str):
        return content.strip()

    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts).strip()


def find_search_call(message: Optional[AIMessage]) -> Optional[Dict[str, Any]]:
    """searchPerfumes 도구 호출 요청 찾기 (다른 도구 이름은 무시)"""
    if message is None:
        return None
    for call in getattr(message, "tool_calls", None) or []:
        if call.get("name") == SEARCH_PERFUMES_TOOL_NAME:
            return call
    return None


def build_tool_payload(result: SearchResult) -> Dict[str, Any]:
    """LLM에 돌려줄 축약 결과 (전체 레코드 대신 요약 필드만)"""
    perfumes = []
    for item in result.items:
        record = item.model_dump(by_alias=True)
        perfumes.append({field: record[field] for field in TOOL_RESULT_FIELDS})
    return {"count": result.count, "perfumes": perfumes}


def _context(config: RunnableConfig) -> Dict[str, Any]:
    return config["configurable"]


async def _invoke_model(config: RunnableConfig) -> AIMessage:
    """시스템 정책 + 전체 이력 + 도구 계약으로 LLM 호출"""
    ctx = _context(config)
    session: ChatSession = ctx["session"]
    provider: LLMProvider = ctx.get("llm_provider") or get_llm_provider()

    messages: List[BaseMessage] = [SystemMessage(content=ctx["policy"])]
    messages.extend(turns_to_messages(session.turns))

    return await provider.invoke_with_tools(messages, [SEARCH_PERFUMES_TOOL])


async def call_model_node(state: ConversationState, config: RunnableConfig) -> Dict[str, Any]:
    """1차 LLM 호출 노드 - 도구 호출 여부 판단"""
    response = await _invoke_model(config)
    tool_call = find_search_call(response)

    logger.info(f"[Orchestrator] 도구 호출: {tool_call['args'] if tool_call else None}")

    return {
        "response": response,
        "tool_call": tool_call,
        "processing_step": "model_called",
    }


def route_after_model(state: ConversationState) -> Literal["run_search", "reply"]:
    """도구 호출 여부에 따른 라우팅"""
    if state.get("tool_call"):
        return "run_search"
    return "reply"


async def run_search_node(state: ConversationState, config: RunnableConfig) -> Dict[str, Any]:
    """
    검색 실행 노드

    1. 도구 호출 요청 턴 추가
    2. 인자 검증/정규화 후 카탈로그 검색
    3. 축약 결과 턴 추가
    """
    ctx = _context(config)
    session: ChatSession = ctx["session"]
    catalog: Catalog = ctx["catalog"]

    tool_call = state["tool_call"]
    call_id = tool_call.get("id") or f"call_{uuid.uuid4().hex[:12]}"
    arguments = dict(tool_call.get("args") or {})

    session.append(Turn.tool_call(SEARCH_PERFUMES_TOOL_NAME, call_id, arguments))

    params = SearchParams.from_tool_arguments(arguments)
    result = search(params, catalog)

    session.append(
        Turn.tool_result(SEARCH_PERFUMES_TOOL_NAME, call_id, build_tool_payload(result))
    )

    return {
        "search_result": result,
        "processing_step": "searched",
    }


async def summarize_node(state: ConversationState, config: RunnableConfig) -> Dict[str, Any]:
    """검색 결과 기반 2차 LLM 호출 노드 - 자연어 요약 생성"""
    session: ChatSession = _context(config)["session"]
    result: SearchResult = state["search_result"]

    response = await _invoke_model(config)
    text = message_text(response) or format_search_summary(result.items)

    session.append(Turn.model_text(text))

    return {
        "reply_text": text,
        "processing_step": "summarized",
    }


async def reply_node(state: ConversationState, config: RunnableConfig) -> Dict[str, Any]:
    """도구 호출 없는 일반 응답 노드"""
    session: ChatSession = _context(config)["session"]

    text = message_text(state.get("response")) or CLARIFYING_PROMPT
    session.append(Turn.model_text(text))

    return {
        "reply_text": text,
        "processing_step": "replied",
    }


def create_conversation_graph() -> StateGraph:
    """
    대화 그래프 생성

    흐름:
    1. call_model: 정책 + 이력 + 도구 계약으로 LLM 호출
    2. route_after_model
       - run_search: searchPerfumes 실행 → summarize (2차 LLM 호출) → END
       - reply: 텍스트 응답 → END

    Returns:
        StateGraph (컴파일 전)
    """
    graph = StateGraph(ConversationState)

    graph.add_node("call_model", call_model_node)
    graph.add_node("run_search", run_search_node)
    graph.add_node("summarize", summarize_node)
    graph.add_node("reply", reply_node)

    graph.set_entry_point("call_model")

    graph.add_conditional_edges(
        "call_model",
        route_after_model,
        {
            "run_search": "run_search",
            "reply": "reply",
        },
    )

    graph.add_edge("run_search", "summarize")
    graph.add_edge("summarize", END)
    graph.add_edge("reply", END)

    return graph


# 싱글톤 인스턴스 (세션 상태는 그래프가 아닌 ChatSession이 보관)
_conversation_graph = None


def get_conversation_graph():
    """컴파일된 대화 그래프 싱글톤 반환"""
    global _conversation_graph
    if _conversation_graph is None:
        _conversation_graph = create_conversation_graph().compile()
    return _conversation_graph


class ConversationOrchestrator:
    """
    대화 오케스트레이터

    세션 하나당 하나씩 생성하며, 세션의 턴 이력을 유일하게 변경합니다.
    같은 세션에 대한 process_message 동시 실행은 호출자가 직렬화해야 합니다.
    """

    def __init__(
        self,
        session: ChatSession,
        catalog: Optional[Catalog] = None,
        llm_provider: Optional[LLMProvider] = None,
        policy: Optional[str] = None,
    ) -> None:
        self._session = session
        self._catalog = catalog
        self._llm_provider = llm_provider
        self._policy = policy

    @property
    def history(self) -> List[Turn]:
        """대화 이력 (읽기 전용 복사본)"""
        return list(self._session.turns)

    def reset(self) -> None:
        """대화 이력 초기화"""
        self._session.reset()
        logger.info(f"[Orchestrator] 세션 초기화: {self._session.session_id}")

    async def process_message(self, user_text: str) -> OrchestratorReply:
        """
        사용자 메시지 처리

        LLM 호출 실패(자격 증명 누락 포함)는 예외로 전파하지 않고
        고정된 사과 문구와 에러 태그로 변환합니다. 실패해도 이력은 되돌리지 않습니다.

        Args:
            user_text: 사용자 메시지 (텍스트 또는 음성 인식 결과)

        Returns:
            OrchestratorReply
        """
        self._session.append(Turn.user_text(user_text))

        try:
            config: RunnableConfig = {
                "configurable": {
                    "session": self._session,
                    "catalog": self._catalog if self._catalog is not None else get_catalog(),
                    "llm_provider": self._llm_provider,
                    "policy": self._policy if self._policy is not None else load_policy(),
                }
            }
            result = await get_conversation_graph().ainvoke(
                {"user_text": user_text, "processing_step": "started"},
                config=config,
            )

        except Exception as e:
            if isinstance(e, ConfigurationError) or "api key" in str(e).lower():
                logger.error(f"[Orchestrator] LLM 자격 증명 오류: {e}")
                return OrchestratorReply(text=API_KEY_APOLOGY, error="API_KEY_ERROR")

            logger.error(f"[Orchestrator] 메시지 처리 실패: {e}", exc_info=True)
            return OrchestratorReply(text=SERVICE_APOLOGY, error="SERVICE_ERROR")

        search_result: Optional[SearchResult] = result.get("search_result")
        if search_result is not None:
            return OrchestratorReply(
                text=result["reply_text"],
                items=search_result.items,
                tool_called=True,
                search_params=search_result.search_params,
            )

        return OrchestratorReply(text=result["reply_text"])

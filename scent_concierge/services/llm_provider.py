"""
LLM Provider 추상화
Gemini와 OpenAI를 선택적으로 사용할 수 있는 추상화 계층
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage

from scent_concierge.config import get_settings
from scent_concierge.exceptions import ConfigurationError


class LLMProvider(ABC):
    """LLM 제공자 추상 기본 클래스"""

    @abstractmethod
    def get_chat_model(self, **kwargs: Any) -> BaseChatModel:
        """채팅 모델 인스턴스 반환"""
        pass

    async def invoke_with_tools(
        self,
        messages: List[BaseMessage],
        tools: Sequence[Dict[str, Any]],
        **kwargs: Any,
    ) -> AIMessage:
        """
        도구 스키마를 바인딩하여 호출

        Args:
            messages: 시스템 정책 + 대화 이력
            tools: 함수 선언 목록 (OpenAI function 형식)

        Returns:
            AIMessage (텍스트 또는 tool_calls 포함)
        """
        model = self.get_chat_model(**kwargs).bind_tools(list(tools))
        return await model.ainvoke(messages)


class GeminiProvider(LLMProvider):
    """Google Gemini LLM 제공자"""

    def __init__(self) -> None:
        settings = get_settings()
        self._api_key = settings.google_api_key
        self._model = settings.resolved_llm_model
        self._temperature = settings.llm_temperature

        if not self._api_key:
            raise ConfigurationError("GOOGLE_API_KEY 환경변수가 설정되지 않았습니다")

    def get_chat_model(self, **kwargs: Any) -> BaseChatModel:
        """ChatGoogleGenerativeAI 인스턴스 반환"""
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            google_api_key=self._api_key,
            model=kwargs.get("model", self._model),
            temperature=kwargs.get("temperature", self._temperature),
        )


class OpenAIProvider(LLMProvider):
    """OpenAI LLM 제공자"""

    def __init__(self) -> None:
        settings = get_settings()
        self._api_key = settings.openai_api_key
        self._model = settings.resolved_llm_model
        self._temperature = settings.llm_temperature

        if not self._api_key:
            raise ConfigurationError("OPENAI_API_KEY 환경변수가 설정되지 않았습니다")

    def get_chat_model(self, **kwargs: Any) -> BaseChatModel:
        """ChatOpenAI 인스턴스 반환"""
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            api_key=self._api_key,
            model=kwargs.get("model", self._model),
            temperature=kwargs.get("temperature", self._temperature),
        )


# 싱글톤 인스턴스
_llm_provider: Optional[LLMProvider] = None


def get_llm_provider() -> LLMProvider:
    """
    설정에 따른 LLM 제공자 반환

    Raises:
        ConfigurationError: API 키가 없는 경우 (호출마다 다시 확인)
    """
    global _llm_provider

    if _llm_provider is None:
        settings = get_settings()

        if settings.llm_provider == "gemini":
            _llm_provider = GeminiProvider()
        elif settings.llm_provider == "openai":
            _llm_provider = OpenAIProvider()
        else:
            raise ConfigurationError(f"지원하지 않는 LLM 제공자: {settings.llm_provider}")

    return _llm_provider

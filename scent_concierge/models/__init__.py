# Pydantic Models
from scent_concierge.models.catalog import (
    Catalog,
    CatalogItem,
    PerfumeNotes,
    ScentFamily,
)
from scent_concierge.models.search import SearchParams, SearchResult
from scent_concierge.models.session import ChatSession, Turn
from scent_concierge.models.response import ChatResponse, OrchestratorReply
from scent_concierge.models.voice import (
    AudioClip,
    SpeechAudio,
    VoiceEvent,
    VoiceEventType,
    VoiceState,
    VoiceSupport,
)

__all__ = [
    # Catalog models
    "Catalog",
    "CatalogItem",
    "PerfumeNotes",
    "ScentFamily",
    # Search models
    "SearchParams",
    "SearchResult",
    # Session models
    "ChatSession",
    "Turn",
    # Response models
    "ChatResponse",
    "OrchestratorReply",
    # Voice models
    "AudioClip",
    "SpeechAudio",
    "VoiceEvent",
    "VoiceEventType",
    "VoiceState",
    "VoiceSupport",
]

"""
음성 모델 정의
음성 세션 상태, 이벤트, 오디오 페이로드 관련 모델
"""
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class VoiceState(str, Enum):
    """음성 세션 상태"""

    IDLE = "idle"
    LISTENING = "listening"  # 마이크 녹음 중
    TRANSCRIBING = "transcribing"  # 음성 인식 요청 중
    SPEAKING = "speaking"  # 음성 합성 재생 중


class VoiceEventType(str, Enum):
    """음성 세션 이벤트 유형"""

    TRANSCRIPT_FINALIZED = "transcript_finalized"
    SPEAKING_CHANGED = "speaking_changed"
    LISTENING_CHANGED = "listening_changed"
    TRANSCRIBING_CHANGED = "transcribing_changed"
    VOICE_ERROR = "voice_error"


class VoiceEvent(BaseModel):
    """음성 세션이 구독자에게 전달하는 이벤트"""

    type: VoiceEventType = Field(..., description="이벤트 유형")
    value: Union[bool, str, None] = Field(None, description="상태 값 또는 텍스트")
    state: VoiceState = Field(..., description="이벤트 발생 직후 세션 상태")
    dismiss_after_ms: Optional[int] = Field(None, description="에러 배너 자동 해제 시간")


class AudioClip(BaseModel):
    """녹음된 오디오"""

    data: bytes = Field(default=b"", description="오디오 바이트")
    mime_type: str = Field(default="audio/webm", description="MIME 타입")
    duration_ms: int = Field(default=0, ge=0, description="녹음 길이 (밀리초)")

    @property
    def filename(self) -> str:
        """업로드용 파일명"""
        extension = self.mime_type.split("/")[-1].split(";")[0] or "webm"
        return f"recording.{extension}"


class SpeechAudio(BaseModel):
    """합성된 음성 오디오"""

    data: bytes = Field(..., description="오디오 바이트")
    content_type: str = Field(default="audio/mpeg", description="MIME 타입")


class VoiceSupport(BaseModel):
    """음성 기능 지원 여부"""

    tts: bool = Field(..., description="음성 합성 사용 가능")
    stt: bool = Field(..., description="음성 인식 사용 가능")
    fully_supported: bool = Field(..., description="음성 대화 전체 사용 가능")

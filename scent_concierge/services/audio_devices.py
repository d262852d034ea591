"""
오디오 디바이스 추상화
마이크 녹음(AudioCapture)과 음성 재생(AudioPlayer) 인터페이스 및 WebSocket 클라이언트 구현
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from scent_concierge.exceptions import CapabilityError
from scent_concierge.models.voice import AudioClip, SpeechAudio

logger = logging.getLogger(__name__)

SendJson = Callable[[Dict[str, Any]], Awaitable[None]]
SendBytes = Callable[[bytes], Awaitable[None]]

MICROPHONE_DENIED_MESSAGE = "Microphone access denied. Please allow microphone access."


class PlaybackHandle(ABC):
    """재생 중인 오디오 핸들"""

    @abstractmethod
    async def wait(self) -> None:
        """재생이 끝날 때까지 대기 (자연 종료 또는 중지)"""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """재생 중지 및 정리 (여러 번 호출 가능)"""
        pass


class AudioCapture(ABC):
    """마이크 녹음 디바이스"""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    async def open(self) -> None:
        """
        녹음 시작

        Raises:
            CapabilityError: 마이크 권한 거부 또는 미지원
        """
        pass

    @abstractmethod
    async def close(self) -> Optional[AudioClip]:
        """녹음 종료 후 녹음된 오디오 반환"""
        pass

    @abstractmethod
    async def abort(self) -> None:
        """녹음 중단 (버퍼 폐기)"""
        pass

    async def release(self) -> None:
        """디바이스 해제"""
        if self.is_open:
            await self.abort()


class AudioPlayer(ABC):
    """음성 재생 디바이스"""

    @abstractmethod
    async def play(self, audio: SpeechAudio) -> PlaybackHandle:
        """재생 시작 후 핸들 반환"""
        pass

    async def release(self) -> None:
        """디바이스 해제"""
        pass


class ClientAudioCapture(AudioCapture):
    """
    브라우저 MediaRecorder 기반 녹음

    클라이언트가 hello 메시지로 마이크 사용 가능 여부를 알려주고,
    녹음 중에는 바이너리 프레임으로 오디오 청크를 보냅니다.
    """

    def __init__(self, send_json: SendJson, microphone: bool = False, mime_type: str = "audio/webm") -> None:
        self._send_json = send_json
        self.microphone = microphone
        self.mime_type = mime_type
        self._chunks: List[bytes] = []
        self._started_at: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self._started_at is not None

    def configure(self, microphone: bool, mime_type: Optional[str] = None) -> None:
        """클라이언트 hello 메시지 반영"""
        self.microphone = microphone
        if mime_type:
            self.mime_type = mime_type

    def feed(self, chunk: bytes) -> None:
        """녹음 청크 수신 (녹음 중이 아니면 무시)"""
        if self.is_open and chunk:
            self._chunks.append(chunk)

    async def open(self) -> None:
        if not self.microphone:
            raise CapabilityError(MICROPHONE_DENIED_MESSAGE)
        if self.is_open:
            return

        self._chunks = []
        self._started_at = time.monotonic()
        await self._send_json({"type": "capture_start", "mime_type": self.mime_type})

    async def close(self) -> Optional[AudioClip]:
        if not self.is_open:
            return None

        duration_ms = int((time.monotonic() - self._started_at) * 1000)
        data = b"".join(self._chunks)
        self._chunks = []
        self._started_at = None
        await self._send_json({"type": "capture_stop"})

        logger.debug(f"[Voice] 녹음 수신 완료: {len(data)} bytes, {duration_ms}ms")
        return AudioClip(data=data, mime_type=self.mime_type, duration_ms=duration_ms)

    async def abort(self) -> None:
        if not self.is_open:
            return

        self._chunks = []
        self._started_at = None
        await self._send_json({"type": "capture_stop"})


class ClientPlaybackHandle(PlaybackHandle):
    """클라이언트 재생 핸들 (playback_ended 메시지로 종료)"""

    def __init__(self, send_json: SendJson) -> None:
        self._send_json = send_json
        self._done = asyncio.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def finish(self) -> None:
        """클라이언트가 재생을 마침"""
        self._done.set()

    async def wait(self) -> None:
        await self._done.wait()

    async def stop(self) -> None:
        if self._done.is_set():
            return
        self._done.set()
        await self._send_json({"type": "playback_stop"})


class ClientAudioPlayer(AudioPlayer):
    """브라우저 Audio 요소 기반 재생"""

    def __init__(self, send_json: SendJson, send_bytes: SendBytes) -> None:
        self._send_json = send_json
        self._send_bytes = send_bytes
        self._current: Optional[ClientPlaybackHandle] = None

    async def play(self, audio: SpeechAudio) -> PlaybackHandle:
        if self._current is not None:
            await self._current.stop()

        handle = ClientPlaybackHandle(self._send_json)
        self._current = handle

        # playback_start 직후 오디오 바이너리 프레임 1개
        await self._send_json({"type": "playback_start", "content_type": audio.content_type})
        await self._send_bytes(audio.data)
        return handle

    def playback_ended(self) -> None:
        """클라이언트 playback_ended 메시지 처리"""
        if self._current is not None:
            self._current.finish()
            self._current = None

    async def release(self) -> None:
        if self._current is not None:
            handle, self._current = self._current, None
            await handle.stop()

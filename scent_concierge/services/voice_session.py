"""
음성 세션
녹음 → 음성 인식 → (대화) → 음성 합성 → 재생 흐름을 관리하는 asyncio 상태 머신
"""
import logging
from typing import Callable, List, Optional, Union

from scent_concierge.config import get_settings
from scent_concierge.exceptions import CapabilityError
from scent_concierge.models.voice import VoiceEvent, VoiceEventType, VoiceState
from scent_concierge.services.audio_devices import AudioCapture, AudioPlayer, PlaybackHandle
from scent_concierge.services.elevenlabs import ElevenLabsClient

logger = logging.getLogger(__name__)

VoiceListener = Callable[[VoiceEvent], None]

_STATE_EVENTS = {
    VoiceState.LISTENING: VoiceEventType.LISTENING_CHANGED,
    VoiceState.TRANSCRIBING: VoiceEventType.TRANSCRIBING_CHANGED,
    VoiceState.SPEAKING: VoiceEventType.SPEAKING_CHANGED,
}


class VoiceSession:
    """
    음성 세션 상태 머신

    상태: idle / listening / transcribing / speaking (동시에 하나만)
    - 녹음과 재생은 상호 배타적
    - 음성 인식은 한 번에 하나만 진행
    - 모든 종료 경로에서 디바이스 핸들을 정리

    Args:
        capture: 녹음 디바이스
        player: 재생 디바이스
        speech: 음성 합성/인식 서비스 (synthesize, transcribe)
        voice_id: 합성 보이스 ID (없으면 서비스 기본값)
        min_recording_ms: 이보다 짧은 녹음은 인식하지 않고 폐기
        error_dismiss_ms: 에러 배너 자동 해제 시간
    """

    def __init__(
        self,
        capture: AudioCapture,
        player: AudioPlayer,
        speech: ElevenLabsClient,
        voice_id: Optional[str] = None,
        min_recording_ms: Optional[int] = None,
        error_dismiss_ms: Optional[int] = None,
    ) -> None:
        settings = get_settings()

        self._capture = capture
        self._player = player
        self._speech = speech
        self._voice_id = voice_id
        self._min_recording_ms = (
            min_recording_ms if min_recording_ms is not None else settings.min_recording_ms
        )
        self._error_dismiss_ms = (
            error_dismiss_ms
            if error_dismiss_ms is not None
            else settings.voice_error_dismiss_seconds * 1000
        )

        self._state = VoiceState.IDLE
        self._listeners: List[VoiceListener] = []
        self._playback: Optional[PlaybackHandle] = None
        self._speak_token = 0  # stop_speaking/destroy 시 증가 → 진행 중인 speak 무효화
        self._destroyed = False

    @property
    def state(self) -> VoiceState:
        return self._state

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def subscribe(self, listener: VoiceListener) -> Callable[[], None]:
        """
        이벤트 구독

        Returns:
            구독 해제 함수
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ========== 이벤트 ==========

    def _emit(
        self,
        event_type: VoiceEventType,
        value: Union[bool, str, None] = None,
        dismiss_after_ms: Optional[int] = None,
    ) -> None:
        if self._destroyed:
            return

        event = VoiceEvent(
            type=event_type,
            value=value,
            state=self._state,
            dismiss_after_ms=dismiss_after_ms,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"[Voice] 이벤트 리스너 오류: {e}", exc_info=True)

    def _set_state(self, new_state: VoiceState) -> None:
        old_state = self._state
        if old_state == new_state:
            return

        self._state = new_state
        logger.debug(f"[Voice] 상태 변경: {old_state.value} → {new_state.value}")

        if old_state in _STATE_EVENTS:
            self._emit(_STATE_EVENTS[old_state], False)
        if new_state in _STATE_EVENTS:
            self._emit(_STATE_EVENTS[new_state], True)

    def _report_error(self, message: str) -> None:
        logger.warning(f"[Voice] 오류: {message}")
        self._emit(VoiceEventType.VOICE_ERROR, message, dismiss_after_ms=self._error_dismiss_ms)

    # ========== 녹음 ==========

    async def start_listening(self) -> bool:
        """
        녹음 시작

        인식 중에는 무시하고, 이미 녹음 중이면 그대로 유지합니다.
        재생 중이면 재생을 먼저 중지합니다.

        Returns:
            녹음 중 상태 여부
        """
        if self._destroyed or self._state == VoiceState.TRANSCRIBING:
            return False
        if self._state == VoiceState.LISTENING:
            return True
        if self._state == VoiceState.SPEAKING:
            await self.stop_speaking()

        try:
            await self._capture.open()
        except CapabilityError as e:
            self._report_error(str(e))
            return False
        except Exception as e:
            logger.error(f"[Voice] 녹음 시작 실패: {e}", exc_info=True)
            self._report_error(f"Could not start recording: {e}")
            return False

        self._set_state(VoiceState.LISTENING)
        logger.info("[Voice] 녹음 시작")
        return True

    async def stop_listening(self) -> Optional[str]:
        """
        녹음 종료 후 음성 인식

        Returns:
            인식된 텍스트 (너무 짧은 녹음, 무음, 오류 시 None)
        """
        if self._destroyed or self._state != VoiceState.LISTENING:
            return None

        try:
            clip = await self._capture.close()
        except Exception as e:
            logger.error(f"[Voice] 녹음 종료 실패: {e}", exc_info=True)
            self._set_state(VoiceState.IDLE)
            self._report_error(f"Could not stop recording: {e}")
            return None

        if clip is None or not clip.data or clip.duration_ms < self._min_recording_ms:
            logger.info(
                f"[Voice] 녹음이 너무 짧아 폐기: {clip.duration_ms if clip else 0}ms"
            )
            self._set_state(VoiceState.IDLE)
            return None

        self._set_state(VoiceState.TRANSCRIBING)

        try:
            text = await self._speech.transcribe(clip)
        except Exception as e:
            logger.error(f"[Voice] 음성 인식 실패: {e}", exc_info=True)
            if self._destroyed:
                return None
            self._set_state(VoiceState.IDLE)
            self._report_error(f"Could not transcribe audio: {e}")
            return None

        if self._destroyed:
            return None

        self._set_state(VoiceState.IDLE)

        text = (text or "").strip()
        if not text:
            logger.info("[Voice] 음성이 감지되지 않음")
            return None

        logger.info(f"[Voice] 인식 완료: {text[:50]}")
        self._emit(VoiceEventType.TRANSCRIPT_FINALIZED, text)
        return text

    # ========== 재생 ==========

    async def speak(self, text: str) -> None:
        """
        텍스트를 합성해 재생하고 재생이 끝날 때까지 대기

        빈 텍스트, 인식 중, 이미 재생 중이면 무시합니다.
        녹음 중이면 녹음을 폐기하고 재생합니다.
        """
        if self._destroyed or not text or not text.strip():
            return
        if self._state in (VoiceState.TRANSCRIBING, VoiceState.SPEAKING):
            logger.info(f"[Voice] {self._state.value} 중이라 재생 요청 무시")
            return

        if self._state == VoiceState.LISTENING:
            try:
                await self._capture.abort()
            except Exception as e:
                logger.error(f"[Voice] 녹음 중단 실패: {e}", exc_info=True)
                self._set_state(VoiceState.IDLE)
                self._report_error(f"Could not stop recording: {e}")
                return
            self._set_state(VoiceState.IDLE)

        self._speak_token += 1
        token = self._speak_token
        self._set_state(VoiceState.SPEAKING)

        try:
            audio = await self._speech.synthesize(text, self._voice_id)
            if token != self._speak_token:
                return

            handle = await self._player.play(audio)
        except Exception as e:
            logger.error(f"[Voice] 음성 합성/재생 실패: {e}", exc_info=True)
            if token == self._speak_token:
                self._set_state(VoiceState.IDLE)
                self._report_error(str(e))
            return

        if token != self._speak_token:
            # 재생 시작 중에 중지됨
            await self._stop_playback(handle)
            return

        self._playback = handle
        error: Optional[str] = None
        try:
            await handle.wait()
        except Exception as e:
            logger.error(f"[Voice] 재생 실패: {e}", exc_info=True)
            error = f"Playback failed: {e}"

        # stop_speaking/destroy가 이미 핸들을 정리함
        if self._playback is not handle:
            return

        self._playback = None
        error = await self._stop_playback(handle) or error
        if token == self._speak_token and not self._destroyed:
            self._set_state(VoiceState.IDLE)
            if error:
                self._report_error(error)
            else:
                logger.info("[Voice] 재생 완료")

    async def _stop_playback(self, handle: PlaybackHandle) -> Optional[str]:
        """
        재생 핸들 정리

        Returns:
            실패 시 에러 메시지 (상태 전이는 호출자가 계속 진행)
        """
        try:
            await handle.stop()
        except Exception as e:
            logger.error(f"[Voice] 재생 중지 실패: {e}", exc_info=True)
            return f"Could not stop playback: {e}"
        return None

    async def stop_speaking(self) -> None:
        """재생 중지"""
        if self._destroyed or self._state != VoiceState.SPEAKING:
            return

        self._speak_token += 1
        handle, self._playback = self._playback, None
        error = await self._stop_playback(handle) if handle is not None else None

        self._set_state(VoiceState.IDLE)
        if error:
            self._report_error(error)
        else:
            logger.info("[Voice] 재생 중지")

    # ========== 정리 ==========

    async def destroy(self) -> None:
        """녹음/재생 중단 및 디바이스 해제 (이후 명령은 무시)"""
        if self._destroyed:
            return

        self._destroyed = True
        self._speak_token += 1
        self._listeners.clear()

        handle, self._playback = self._playback, None
        if handle is not None:
            await self._stop_playback(handle)

        for label, release in (
            ("녹음 중단", self._capture.abort if self._capture.is_open else None),
            ("녹음 디바이스 해제", self._capture.release),
            ("재생 디바이스 해제", self._player.release),
        ):
            if release is None:
                continue
            try:
                await release()
            except Exception as e:
                logger.error(f"[Voice] {label} 실패: {e}", exc_info=True)

        self._state = VoiceState.IDLE
        logger.info("[Voice] 세션 종료")

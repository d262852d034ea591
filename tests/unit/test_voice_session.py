"""
음성 세션 상태 머신 유닛 테스트
"""
import asyncio
from typing import List, Optional

import pytest

from scent_concierge.exceptions import CapabilityError, ServiceError
from scent_concierge.models.voice import AudioClip, SpeechAudio, VoiceEventType, VoiceState
from scent_concierge.services.audio_devices import AudioCapture, AudioPlayer, PlaybackHandle
from scent_concierge.services.voice_session import VoiceSession


class FakeCapture(AudioCapture):
    """녹음 디바이스 대역"""

    def __init__(self, duration_ms: int = 1200, denied: bool = False) -> None:
        self.duration_ms = duration_ms
        self.denied = denied
        self.open_count = 0
        self.aborted = 0
        self.released = False
        self.abort_error: Optional[Exception] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        if self.denied:
            raise CapabilityError("Microphone access denied. Please allow microphone access.")
        self.open_count += 1
        self._open = True

    async def close(self) -> Optional[AudioClip]:
        self._open = False
        return AudioClip(data=b"audio", duration_ms=self.duration_ms)

    async def abort(self) -> None:
        self.aborted += 1
        if self.abort_error:
            raise self.abort_error
        self._open = False

    async def release(self) -> None:
        await super().release()
        self.released = True


class FakeHandle(PlaybackHandle):
    def __init__(self, auto_finish: bool, stop_error: Optional[Exception] = None) -> None:
        self._done = asyncio.Event()
        self.stopped = 0
        self.stop_error = stop_error
        if auto_finish:
            self._done.set()

    def finish(self) -> None:
        self._done.set()

    async def wait(self) -> None:
        await self._done.wait()

    async def stop(self) -> None:
        self.stopped += 1
        self._done.set()
        if self.stop_error:
            raise self.stop_error


class FakePlayer(AudioPlayer):
    """재생 디바이스 대역"""

    def __init__(self, auto_finish: bool = True, stop_error: Optional[Exception] = None) -> None:
        self.auto_finish = auto_finish
        self.stop_error = stop_error
        self.handles: List[FakeHandle] = []
        self.released = False

    async def play(self, audio: SpeechAudio) -> PlaybackHandle:
        handle = FakeHandle(self.auto_finish, self.stop_error)
        self.handles.append(handle)
        return handle

    async def release(self) -> None:
        self.released = True


class FakeSpeech:
    """음성 합성/인식 서비스 대역"""

    def __init__(self, transcript: str = "something fresh for summer") -> None:
        self.transcript = transcript
        self.transcribe_calls = 0
        self.synthesize_calls: List[str] = []
        self.transcribe_error: Optional[Exception] = None
        self.synthesize_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def transcribe(self, clip: AudioClip) -> str:
        self.transcribe_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcript

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> SpeechAudio:
        self.synthesize_calls.append(text)
        if self.synthesize_error:
            raise self.synthesize_error
        return SpeechAudio(data=b"mp3")


async def settle() -> None:
    """대기 중인 태스크가 진행되도록 이벤트 루프 양보"""
    for _ in range(10):
        await asyncio.sleep(0)


def build(capture=None, player=None, speech=None):
    capture = capture or FakeCapture()
    player = player or FakePlayer()
    speech = speech or FakeSpeech()
    session = VoiceSession(capture, player, speech, min_recording_ms=300, error_dismiss_ms=5000)
    events = []
    session.subscribe(events.append)
    return session, capture, player, speech, events


def event_pairs(events):
    return [(event.type, event.value) for event in events]


class TestListening:
    """녹음/인식 테스트"""

    def test_start_listening_twice_is_noop(self):
        session, capture, _, _, events = build()

        async def scenario():
            assert await session.start_listening() is True
            assert await session.start_listening() is True

        asyncio.run(scenario())

        assert session.state == VoiceState.LISTENING
        assert capture.open_count == 1
        assert event_pairs(events) == [(VoiceEventType.LISTENING_CHANGED, True)]

    def test_transcript_finalized_once(self):
        session, _, _, speech, events = build()

        async def scenario():
            await session.start_listening()
            return await session.stop_listening()

        text = asyncio.run(scenario())

        assert text == "something fresh for summer"
        assert session.state == VoiceState.IDLE
        assert speech.transcribe_calls == 1
        assert event_pairs(events) == [
            (VoiceEventType.LISTENING_CHANGED, True),
            (VoiceEventType.LISTENING_CHANGED, False),
            (VoiceEventType.TRANSCRIBING_CHANGED, True),
            (VoiceEventType.TRANSCRIBING_CHANGED, False),
            (VoiceEventType.TRANSCRIPT_FINALIZED, "something fresh for summer"),
        ]

    def test_short_recording_discarded(self):
        """최소 길이 미만 녹음은 인식하지 않음"""
        session, _, _, speech, events = build(capture=FakeCapture(duration_ms=120))

        async def scenario():
            await session.start_listening()
            return await session.stop_listening()

        assert asyncio.run(scenario()) is None
        assert session.state == VoiceState.IDLE
        assert speech.transcribe_calls == 0
        assert all(event.type != VoiceEventType.TRANSCRIBING_CHANGED for event in events)

    def test_blank_transcript(self):
        session, _, _, _, events = build(speech=FakeSpeech(transcript="   "))

        async def scenario():
            await session.start_listening()
            return await session.stop_listening()

        assert asyncio.run(scenario()) is None
        assert session.state == VoiceState.IDLE
        types = [event.type for event in events]
        assert VoiceEventType.TRANSCRIPT_FINALIZED not in types
        assert VoiceEventType.VOICE_ERROR not in types

    def test_transcription_error(self):
        speech = FakeSpeech()
        speech.transcribe_error = ServiceError("STT 오류: 500", status_code=500)
        session, _, _, _, events = build(speech=speech)

        async def scenario():
            await session.start_listening()
            return await session.stop_listening()

        assert asyncio.run(scenario()) is None
        assert session.state == VoiceState.IDLE
        error = events[-1]
        assert error.type == VoiceEventType.VOICE_ERROR
        assert error.value.startswith("Could not transcribe audio")
        assert error.dismiss_after_ms == 5000

    def test_microphone_denied(self):
        session, _, _, _, events = build(capture=FakeCapture(denied=True))

        assert asyncio.run(session.start_listening()) is False
        assert session.state == VoiceState.IDLE
        assert event_pairs(events) == [
            (VoiceEventType.VOICE_ERROR, "Microphone access denied. Please allow microphone access.")
        ]

    def test_stop_listening_when_idle(self):
        session, _, _, speech, events = build()

        assert asyncio.run(session.stop_listening()) is None
        assert speech.transcribe_calls == 0
        assert events == []

    def test_commands_ignored_while_transcribing(self):
        session, capture, _, speech, events = build()
        speech.gate = asyncio.Event()

        async def scenario():
            await session.start_listening()
            task = asyncio.create_task(session.stop_listening())
            await settle()
            assert session.state == VoiceState.TRANSCRIBING

            assert await session.start_listening() is False
            await session.speak("Hello there")
            assert session.state == VoiceState.TRANSCRIBING

            speech.gate.set()
            return await task

        assert asyncio.run(scenario()) == "something fresh for summer"
        assert capture.open_count == 1
        assert speech.synthesize_calls == []
        finalized = [e for e in events if e.type == VoiceEventType.TRANSCRIPT_FINALIZED]
        assert len(finalized) == 1


class TestSpeaking:
    """음성 재생 테스트"""

    def test_speak_until_playback_ends(self):
        session, _, player, speech, events = build()

        asyncio.run(session.speak("Try **Ocean Breeze**"))

        assert speech.synthesize_calls == ["Try **Ocean Breeze**"]
        assert session.state == VoiceState.IDLE
        assert player.handles[0].stopped == 1
        assert event_pairs(events) == [
            (VoiceEventType.SPEAKING_CHANGED, True),
            (VoiceEventType.SPEAKING_CHANGED, False),
        ]

    def test_speak_while_listening_discards_recording(self):
        """녹음 중 재생 요청 → 녹음 폐기 후 바로 재생, 인식하지 않음"""
        session, capture, player, speech, events = build(player=FakePlayer(auto_finish=False))

        async def scenario():
            await session.start_listening()
            task = asyncio.create_task(session.speak("Here are my picks"))
            await settle()
            assert session.state == VoiceState.SPEAKING
            player.handles[0].finish()
            await task

        asyncio.run(scenario())

        assert capture.aborted == 1
        assert speech.transcribe_calls == 0
        assert event_pairs(events) == [
            (VoiceEventType.LISTENING_CHANGED, True),
            (VoiceEventType.LISTENING_CHANGED, False),
            (VoiceEventType.SPEAKING_CHANGED, True),
            (VoiceEventType.SPEAKING_CHANGED, False),
        ]

    def test_stop_speaking(self):
        session, _, player, _, events = build(player=FakePlayer(auto_finish=False))

        async def scenario():
            task = asyncio.create_task(session.speak("A long description"))
            await settle()
            await session.stop_speaking()
            await task

        asyncio.run(scenario())

        assert session.state == VoiceState.IDLE
        assert player.handles[0].stopped >= 1
        assert event_pairs(events) == [
            (VoiceEventType.SPEAKING_CHANGED, True),
            (VoiceEventType.SPEAKING_CHANGED, False),
        ]

    def test_start_listening_interrupts_speech(self):
        session, capture, player, _, _ = build(player=FakePlayer(auto_finish=False))

        async def scenario():
            task = asyncio.create_task(session.speak("Let me tell you"))
            await settle()
            assert await session.start_listening() is True
            await task

        asyncio.run(scenario())

        assert session.state == VoiceState.LISTENING
        assert player.handles[0].stopped >= 1
        assert capture.open_count == 1

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_text_ignored(self, text):
        session, _, _, speech, events = build()

        asyncio.run(session.speak(text))

        assert speech.synthesize_calls == []
        assert events == []

    def test_speak_while_speaking_ignored(self):
        session, _, player, speech, _ = build(player=FakePlayer(auto_finish=False))

        async def scenario():
            task = asyncio.create_task(session.speak("First"))
            await settle()
            await session.speak("Second")
            player.handles[0].finish()
            await task

        asyncio.run(scenario())

        assert speech.synthesize_calls == ["First"]

    def test_synthesis_error(self):
        speech = FakeSpeech()
        speech.synthesize_error = ServiceError("TTS 오류: 500", status_code=500)
        session, _, player, _, events = build(speech=speech)

        asyncio.run(session.speak("Hello"))

        assert session.state == VoiceState.IDLE
        assert player.handles == []
        assert events[-1].type == VoiceEventType.VOICE_ERROR
        assert events[-1].dismiss_after_ms == 5000

    def test_capture_abort_failure_while_listening(self):
        """녹음 중단 실패 → 예외 없이 idle 복귀 후 에러 이벤트, 합성하지 않음"""
        capture = FakeCapture()
        capture.abort_error = RuntimeError("device busy")
        session, _, player, speech, events = build(capture=capture)

        async def scenario():
            await session.start_listening()
            await session.speak("Here are my picks")

        asyncio.run(scenario())

        assert session.state == VoiceState.IDLE
        assert speech.synthesize_calls == []
        assert player.handles == []
        assert event_pairs(events)[:2] == [
            (VoiceEventType.LISTENING_CHANGED, True),
            (VoiceEventType.LISTENING_CHANGED, False),
        ]
        assert events[-1].type == VoiceEventType.VOICE_ERROR
        assert events[-1].value == "Could not stop recording: device busy"

    def test_playback_stop_failure(self):
        player = FakePlayer(auto_finish=False, stop_error=RuntimeError("device busy"))
        session, _, _, _, events = build(player=player)

        async def scenario():
            task = asyncio.create_task(session.speak("A long description"))
            await settle()
            await session.stop_speaking()
            await task

        asyncio.run(scenario())

        assert session.state == VoiceState.IDLE
        assert event_pairs(events) == [
            (VoiceEventType.SPEAKING_CHANGED, True),
            (VoiceEventType.SPEAKING_CHANGED, False),
            (VoiceEventType.VOICE_ERROR, "Could not stop playback: device busy"),
        ]

    def test_playback_cleanup_failure_after_finish(self):
        """재생 자연 종료 후 핸들 정리 실패 → idle 복귀 후 에러 이벤트"""
        player = FakePlayer(stop_error=RuntimeError("device busy"))
        session, _, _, _, events = build(player=player)

        asyncio.run(session.speak("Hello"))

        assert session.state == VoiceState.IDLE
        assert events[-1].type == VoiceEventType.VOICE_ERROR
        assert events[-1].value == "Could not stop playback: device busy"


class TestLifecycle:
    """구독/종료 테스트"""

    def test_unsubscribe(self):
        session = VoiceSession(FakeCapture(), FakePlayer(), FakeSpeech(), min_recording_ms=300)
        events = []
        unsubscribe = session.subscribe(events.append)
        unsubscribe()

        asyncio.run(session.start_listening())

        assert events == []

    def test_destroy_releases_devices(self):
        session, capture, player, _, _ = build()

        async def scenario():
            await session.start_listening()
            await session.destroy()
            return await session.start_listening()

        assert asyncio.run(scenario()) is False
        assert capture.aborted == 1
        assert capture.released is True
        assert player.released is True
        assert session.state == VoiceState.IDLE
        assert session.destroyed is True

    def test_destroy_during_transcription(self):
        session, _, _, speech, events = build()
        speech.gate = asyncio.Event()

        async def scenario():
            await session.start_listening()
            task = asyncio.create_task(session.stop_listening())
            await settle()
            await session.destroy()
            speech.gate.set()
            return await task

        assert asyncio.run(scenario()) is None
        assert all(event.type != VoiceEventType.TRANSCRIPT_FINALIZED for event in events)

    def test_destroy_with_failing_devices(self):
        """녹음 중단 실패해도 재생 디바이스는 해제"""
        capture = FakeCapture()
        capture.abort_error = RuntimeError("device busy")
        session, _, player, _, _ = build(capture=capture)

        async def scenario():
            await session.start_listening()
            await session.destroy()

        asyncio.run(scenario())

        assert capture.aborted >= 1
        assert player.released is True
        assert session.state == VoiceState.IDLE
        assert session.destroyed is True

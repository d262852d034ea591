"""
음성 엔드포인트
음성 기능 지원 여부, 보이스 목록, 음성 대화 WebSocket 채널
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Dict, List, Optional, Set

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from scent_concierge.api.chat import run_chat_turn
from scent_concierge.models.session import ChatSession
from scent_concierge.models.voice import VoiceEvent, VoiceSupport
from scent_concierge.services.audio_devices import ClientAudioCapture, ClientAudioPlayer
from scent_concierge.services.elevenlabs import check_voice_support, get_elevenlabs_client
from scent_concierge.services.session_store import get_session_store
from scent_concierge.services.voice_session import VoiceSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/voice/support", response_model=VoiceSupport)
async def get_voice_support(
    microphone: bool = Query(True, description="클라이언트 마이크 사용 가능 여부"),
) -> VoiceSupport:
    """음성 기능 지원 여부 (미설정 시 음성 UI 비활성화)"""
    return check_voice_support(microphone)


@router.get("/voice/voices")
async def list_voices() -> Dict[str, List[Dict[str, Any]]]:
    """ElevenLabs 보이스 목록 (실패 시 빈 목록)"""
    voices = await get_elevenlabs_client().list_voices()
    return {"voices": voices}


class VoiceChannel:
    """
    WebSocket 송신 채널

    음성 이벤트(동기 콜백)와 디바이스 메시지(비동기)를 하나의 큐로 모아
    보낸 순서대로 전송합니다. playback_start 다음에는 항상 오디오 프레임이 옵니다.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._queue: "asyncio.Queue[tuple]" = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        self._writer = asyncio.create_task(self._write_loop())

    async def close(self) -> None:
        self._closed = True
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None

    def _enqueue(self, kind: str, payload: Any) -> None:
        # 연결 종료 후 메시지는 버림
        if self._closed:
            return
        self._queue.put_nowait((kind, payload))

    async def send_json(self, message: Dict[str, Any]) -> None:
        self._enqueue("json", message)

    async def send_bytes(self, data: bytes) -> None:
        self._enqueue("bytes", data)

    def publish_event(self, event: VoiceEvent) -> None:
        """VoiceSession 구독 콜백"""
        self._enqueue("json", event.model_dump(mode="json"))

    async def _write_loop(self) -> None:
        try:
            while True:
                kind, payload = await self._queue.get()
                if kind == "bytes":
                    await self._websocket.send_bytes(payload)
                else:
                    await self._websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"[Voice] 전송 중단 (연결 종료): {e}")
        finally:
            self._closed = True
            while not self._queue.empty():
                self._queue.get_nowait()


class VoiceConnection:
    """WebSocket 연결 하나에 대응하는 음성 대화 세션"""

    def __init__(self, websocket: WebSocket, chat_session: ChatSession) -> None:
        self.chat_session = chat_session
        self.channel = VoiceChannel(websocket)
        self.capture = ClientAudioCapture(self.channel.send_json)
        self.player = ClientAudioPlayer(self.channel.send_json, self.channel.send_bytes)
        self.voice = VoiceSession(self.capture, self.player, get_elevenlabs_client())
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe = self.voice.subscribe(self.channel.publish_event)

    def spawn(self, coro: Awaitable[Any], name: str) -> None:
        """명령을 태스크로 실행 (인식 중에도 다음 메시지를 계속 수신)"""
        task = asyncio.ensure_future(self._run(coro, name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _run(coro: Awaitable[Any], name: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[Voice] 명령 처리 실패 ({name}): {e}", exc_info=True)

    async def finish_listening(self) -> None:
        """녹음 종료 → 인식 → 대화 → 응답 음성 재생"""
        transcript = await self.voice.stop_listening()
        if transcript is None:
            return

        response = await run_chat_turn(self.chat_session, transcript)
        await self.channel.send_json(
            {"type": "chat_reply", "reply": response.model_dump(mode="json", by_alias=True)}
        )
        await self.voice.speak(response.speech_text)

    async def handle_text(self, raw: str) -> None:
        """클라이언트 JSON 메시지 처리"""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"[Voice] 잘못된 메시지 무시: {raw[:100]}")
            return
        if not isinstance(message, dict):
            return

        message_type = message.get("type")

        if message_type == "hello":
            microphone = bool(message.get("microphone"))
            self.capture.configure(microphone, message.get("mime_type"))
            support = check_voice_support(microphone)
            await self.channel.send_json({"type": "support", **support.model_dump()})

        elif message_type == "start_listening":
            self.spawn(self.voice.start_listening(), message_type)

        elif message_type == "stop_listening":
            self.spawn(self.finish_listening(), message_type)

        elif message_type == "stop_speaking":
            self.spawn(self.voice.stop_speaking(), message_type)

        elif message_type == "playback_ended":
            self.player.playback_ended()

        elif message_type == "speak":
            self.spawn(self.voice.speak(str(message.get("text") or "")), message_type)

        else:
            logger.warning(f"[Voice] 알 수 없는 메시지 유형: {message_type}")

    async def close(self) -> None:
        """태스크 취소, 디바이스 해제, 송신 채널 종료"""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        self._unsubscribe()
        await self.voice.destroy()
        await self.channel.close()


@router.websocket("/voice/ws")
async def voice_channel(websocket: WebSocket, session_id: Optional[str] = None) -> None:
    """
    음성 대화 채널

    클라이언트 → 서버:
        JSON: hello, start_listening, stop_listening, stop_speaking, playback_ended, speak
        바이너리: 녹음 중 오디오 청크
    서버 → 클라이언트:
        JSON: 음성 이벤트, support, capture_start/stop, playback_start/stop, chat_reply
        바이너리: playback_start 직후 합성 음성
    """
    await websocket.accept()

    chat_session = await get_session_store().get_or_create_session(session_id)
    connection = VoiceConnection(websocket, chat_session)
    connection.channel.start()

    await connection.channel.send_json(
        {"type": "session", "session_id": chat_session.session_id}
    )
    logger.info(f"[Voice] 연결: {chat_session.session_id}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            if message.get("bytes") is not None:
                connection.capture.feed(message["bytes"])
            elif message.get("text") is not None:
                await connection.handle_text(message["text"])

    except WebSocketDisconnect:
        pass
    finally:
        await connection.close()
        logger.info(f"[Voice] 연결 종료: {chat_session.session_id}")

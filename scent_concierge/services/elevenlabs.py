"""
ElevenLabs 음성 API 클라이언트
음성 합성(TTS), 음성 인식(STT), 보이스 목록 조회
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from scent_concierge.config import get_settings
from scent_concierge.exceptions import ConfigurationError, ServiceError
from scent_concierge.models.voice import AudioClip, SpeechAudio, VoiceSupport

logger = logging.getLogger(__name__)

# 자연스러운 대화용 음성 설정
VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.5,
    "use_speaker_boost": True,
}

_transient_retry = retry(
    retry=retry_if_exception_type(httpx.TransportError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)


class ElevenLabsClient:
    """ElevenLabs API 클라이언트"""

    BASE_URL = "https://api.elevenlabs.io/v1"

    def __init__(self, api_key: Optional[str] = None) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.elevenlabs_api_key
        self._default_voice_id = settings.elevenlabs_voice_id
        self._tts_model = settings.elevenlabs_tts_model
        self._stt_model = settings.elevenlabs_stt_model
        self._timeout = settings.elevenlabs_timeout_seconds

    def _get_headers(self) -> Dict[str, str]:
        """API 헤더 반환"""
        if not self._api_key:
            raise ConfigurationError("ELEVENLABS_API_KEY 환경변수가 설정되지 않았습니다")
        return {"xi-api-key": self._api_key}

    @staticmethod
    def _raise_for_status(response: httpx.Response, label: str) -> None:
        """HTTP 오류를 ServiceError로 변환"""
        if response.status_code == 401:
            raise ServiceError(f"{label} 인증 실패", status_code=401)
        if response.status_code == 429:
            raise ServiceError(f"{label} 호출 한도 초과", status_code=429)
        if response.status_code >= 400:
            detail = ""
            try:
                body = response.json()
                if isinstance(body, dict):
                    detail = body.get("detail") or ""
                    if isinstance(detail, dict):
                        detail = detail.get("message", "")
            except ValueError:
                detail = response.text[:200]
            raise ServiceError(
                f"{label} 오류: {response.status_code} {detail}".strip(),
                status_code=response.status_code,
            )

    @_transient_retry
    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> SpeechAudio:
        """
        텍스트를 음성으로 변환

        Args:
            text: 읽을 텍스트
            voice_id: 보이스 ID (없으면 기본 보이스)

        Returns:
            SpeechAudio (audio/mpeg)
        """
        headers = {
            **self._get_headers(),
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
        }
        voice_id = voice_id or self._default_voice_id

        logger.info(f"[ElevenLabs] TTS 요청: {len(text)}자, voice={voice_id}")

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                f"{self.BASE_URL}/text-to-speech/{voice_id}",
                headers=headers,
                json={
                    "text": text,
                    "model_id": self._tts_model,
                    "voice_settings": VOICE_SETTINGS,
                },
            )

        self._raise_for_status(response, "TTS")

        audio = SpeechAudio(
            data=response.content,
            content_type=response.headers.get("content-type", "audio/mpeg"),
        )
        logger.info(f"[ElevenLabs] TTS 완료: {len(audio.data)} bytes")
        return audio

    @_transient_retry
    async def transcribe(self, clip: AudioClip) -> str:
        """
        녹음된 오디오를 텍스트로 변환

        Args:
            clip: 녹음된 오디오

        Returns:
            인식된 텍스트 (음성이 없으면 빈 문자열)
        """
        headers = self._get_headers()

        logger.info(f"[ElevenLabs] STT 요청: {len(clip.data)} bytes, {clip.duration_ms}ms")

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                f"{self.BASE_URL}/speech-to-text",
                headers=headers,
                files={"file": (clip.filename, clip.data, clip.mime_type)},
                data={"model_id": self._stt_model},
            )

        self._raise_for_status(response, "STT")

        data = response.json()
        return data.get("text") or ""

    async def list_voices(self) -> List[Dict[str, Any]]:
        """사용 가능한 보이스 목록 (미설정/실패 시 빈 목록)"""
        if not self._api_key:
            return []

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    f"{self.BASE_URL}/voices",
                    headers=self._get_headers(),
                )
            self._raise_for_status(response, "Voices")
            return response.json().get("voices", [])
        except (httpx.HTTPError, ServiceError) as e:
            logger.warning(f"[ElevenLabs] 보이스 목록 조회 실패: {e}")
            return []


def check_voice_support(microphone: bool = True) -> VoiceSupport:
    """
    음성 기능 지원 여부 확인

    Args:
        microphone: 클라이언트의 마이크 녹음 가능 여부

    Returns:
        VoiceSupport
    """
    configured = bool(get_settings().elevenlabs_api_key)
    return VoiceSupport(
        tts=configured,
        stt=configured and microphone,
        fully_supported=configured and microphone,
    )


# 싱글톤 인스턴스
_elevenlabs_client: Optional[ElevenLabsClient] = None


def get_elevenlabs_client() -> ElevenLabsClient:
    """ElevenLabs 클라이언트 싱글톤 반환"""
    global _elevenlabs_client
    if _elevenlabs_client is None:
        _elevenlabs_client = ElevenLabsClient()
    return _elevenlabs_client

"""TTS backends. Each exposes synthesize(text, voice, audio_config) -> base64 audio."""

import asyncio
import base64
import logging

import edge_tts
import requests

from podcast_journey.constants import TTS_API_URL, TTS_TIMEOUT
from podcast_journey.errors import TtsApiError
from podcast_journey.models import AudioConfig, VoiceProfile

logger = logging.getLogger(__name__)


def _error_message(response: requests.Response) -> str:
    """Pull error.message out of a Google API error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] if response.text else ""
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message", ""))
    return ""


class GoogleTtsClient:
    """Google Cloud Text-to-Speech over REST (text:synthesize)."""

    def __init__(
        self,
        api_key: str,
        api_url: str = TTS_API_URL,
        timeout: float = TTS_TIMEOUT,
        session: requests.Session | None = None,
    ):
        if not api_key:
            raise ValueError("Google TTS API key is required")
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def synthesize(self, text: str, voice: VoiceProfile, audio_config: AudioConfig) -> str:
        body = {
            "input": {"text": text},
            "voice": voice.to_request(),
            "audioConfig": audio_config.to_request(),
        }
        logger.debug("TTS request: %d chars, voice %s", len(text), voice.name)
        try:
            response = self.session.post(
                self.api_url,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TtsApiError(f"TTS request failed: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            raise TtsApiError(
                f"TTS API returned HTTP {response.status_code}: {message or response.reason}",
                status=response.status_code,
                payload_message=message,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TtsApiError("TTS API returned a non-JSON body", status=response.status_code) from e
        if not isinstance(body, dict):
            raise TtsApiError("TTS API returned an unexpected body", status=response.status_code)
        content = body.get("audioContent")
        if not content:
            raise TtsApiError("No audio content received from TTS API", status=response.status_code)
        return content


def _edge_rate(speaking_rate: float) -> str:
    """1.0 → "+0%", 0.9 → "-10%"."""
    return f"{round((speaking_rate - 1.0) * 100):+d}%"


class EdgeTtsClient:
    """Microsoft Edge read-aloud voices via edge-tts. Needs no API key.

    Uses VoiceProfile.edge_name and maps speaking_rate to a relative rate.
    Pitch is not mapped (edge-tts takes Hz, not semitones).
    """

    def synthesize(self, text: str, voice: VoiceProfile, audio_config: AudioConfig) -> str:
        rate = _edge_rate(audio_config.speaking_rate)
        logger.debug("edge-tts request: %d chars, voice %s, rate %s", len(text), voice.edge_name, rate)
        try:
            audio = asyncio.run(self._collect(text, voice.edge_name, rate))
        except Exception as e:
            raise TtsApiError(f"edge-tts failed: {e}", status=getattr(e, "status", None)) from e
        if not audio:
            raise TtsApiError(f"edge-tts produced no audio for: {text[:50]}...")
        return base64.b64encode(audio).decode("ascii")

    @staticmethod
    async def _collect(text: str, voice: str, rate: str) -> bytes:
        communicate = edge_tts.Communicate(text, voice, rate=rate)
        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
        return bytes(audio)


def create_client(settings):
    """Build the TTS backend named by settings.tts_backend."""
    if settings.tts_backend == "google":
        return GoogleTtsClient(settings.tts_api_key, api_url=settings.tts_api_url, timeout=settings.tts_timeout)
    if settings.tts_backend == "edge":
        return EdgeTtsClient()
    raise ValueError(f"Unknown TTS backend: {settings.tts_backend}")

"""Google Cloud Text-to-Speech REST client."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import requests

from errors import SpeechSynthesisError

from .http import build_http_session, run_blocking

logger = logging.getLogger(__name__)

GOOGLE_TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"


class GoogleTTSClient:
    """
    Synthesizes text to base64 MP3 audio.

    Usage:
        tts = GoogleTTSClient(api_key="...", voice_name="ko-KR-Standard-A")
        audio_b64 = await tts.synthesize("Raise both arms", "ko-KR")
    """

    def __init__(
        self,
        api_key: str,
        voice_name: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.voice_name = voice_name
        self.timeout = timeout
        self._http = session or build_http_session()

    def _post(self, text: str, language_code: str) -> Optional[str]:
        voice = {"languageCode": language_code}
        if self.voice_name:
            voice["name"] = self.voice_name
        body = {
            "input": {"text": text},
            "voice": voice,
            "audioConfig": {"audioEncoding": "MP3"},
        }
        resp = self._http.post(
            GOOGLE_TTS_URL, params={"key": self.api_key}, json=body, timeout=self.timeout
        )
        if not resp.ok:
            logger.warning("TTS request rejected with status %s", resp.status_code)
            return None
        return resp.json().get("audioContent") or None

    async def synthesize(self, text: str, language_code: str) -> Optional[str]:
        """Return base64 audio, or None when the service declined the request."""
        try:
            return await run_blocking(self._post, text, language_code, timeout=self.timeout + 1.0)
        except asyncio.TimeoutError as e:
            raise SpeechSynthesisError(f"TTS timed out after {self.timeout}s") from e
        except (requests.RequestException, ValueError) as e:
            raise SpeechSynthesisError(f"TTS request failed: {e}") from e

    def close(self) -> None:
        self._http.close()

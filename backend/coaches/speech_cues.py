"""
Speech Cue Engine - single-flight spoken utterances.

At most one utterance is active. A new enqueue() stops whatever is playing
(or still being synthesized) before starting; nothing is queued. Audio
problems never reach the caller: the phase machine must keep moving even
when the speaker does not.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol

from audio import AudioHandle, AudioSink
from errors import AudioPlaybackError

logger = logging.getLogger(__name__)


class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str, language_code: str) -> Optional[str]:
        ...


class SpeechOutcome(str, Enum):
    COMPLETED = "completed"  # played to the end, or failed and was swallowed
    SKIPPED = "skipped"      # nothing to say, or nothing to say it with
    STOPPED = "stopped"      # superseded by a newer utterance or by stop()


class SpeechCueEngine:
    """
    Usage:
        engine = SpeechCueEngine(GoogleTTSClient(api_key), sink, "ko-KR")
        outcome = await engine.enqueue("Raise both arms")
    """

    def __init__(
        self,
        synthesizer: Optional[SpeechSynthesizer],
        sink: AudioSink,
        language_code: str = "ko-KR",
        playback_timeout: Optional[float] = None,
    ):
        self._synthesizer = synthesizer
        self._sink = sink
        self.language_code = language_code
        self.playback_timeout = playback_timeout
        self._handle: Optional[AudioHandle] = None
        self._token: Optional[object] = None

    @property
    def is_playing(self) -> bool:
        return self._handle is not None and not self._handle.done

    @property
    def available(self) -> bool:
        return self._synthesizer is not None

    async def enqueue(self, text: str) -> SpeechOutcome:
        """Speak text, replacing any current utterance. Never raises on audio errors."""
        if not text or self._synthesizer is None:
            return SpeechOutcome.SKIPPED

        self.stop()
        token = object()
        self._token = token

        try:
            audio_b64 = await self._synthesizer.synthesize(text, self.language_code)
        except Exception as e:
            logger.warning("Speech synthesis failed for %r: %s", text, e)
            return SpeechOutcome.COMPLETED

        if self._token is not token:
            return SpeechOutcome.STOPPED
        if not audio_b64:
            self._token = None
            return SpeechOutcome.SKIPPED

        handle = self._sink.play(audio_b64)
        self._handle = handle
        try:
            await handle.wait(timeout=self.playback_timeout)
        except AudioPlaybackError as e:
            logger.warning("Playback of %r failed: %s", text, e)
            return SpeechOutcome.COMPLETED
        except asyncio.CancelledError:
            handle.stop()
            raise
        finally:
            if self._handle is handle:
                self._handle = None
                self._token = None

        return SpeechOutcome.STOPPED if handle.stopped else SpeechOutcome.COMPLETED

    def stop(self) -> None:
        """Stop the current utterance, if any, and forget a pending one."""
        self._token = None
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.stop()

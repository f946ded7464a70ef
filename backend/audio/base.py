"""Common interfaces for utterance playback sinks."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from errors import AudioPlaybackError

logger = logging.getLogger(__name__)


class AudioHandle:
    """
    One utterance handed to a sink.

    The handle resolves exactly once: when playback ends, when it fails
    (wait() raises AudioPlaybackError) or when it is stopped.
    """

    def __init__(self, handle_id: str, on_stop: Optional[Callable[["AudioHandle"], None]] = None):
        self.id = handle_id
        self.stopped = False
        self._on_stop = on_stop
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def finish(self, error: Optional[str] = None) -> None:
        if self._future.done():
            return
        if error:
            self._future.set_exception(AudioPlaybackError(error))
        else:
            self._future.set_result(None)

    def stop(self) -> None:
        if self._future.done():
            return
        self.stopped = True
        if self._on_stop is not None:
            self._on_stop(self)
        self._future.set_result(None)

    async def wait(self, timeout: Optional[float] = None) -> None:
        try:
            await asyncio.wait_for(asyncio.shield(self._future), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Playback of %s not acknowledged after %ss", self.id, timeout)
            self.stop()


class AudioSink(ABC):
    """Abstract base class for places an utterance can be played."""

    name: str = "base"

    @abstractmethod
    def play(self, audio_b64: str) -> AudioHandle:
        """Start playing base64 audio and return its handle."""

    def handle_client_message(self, message: Dict[str, Any]) -> bool:
        """Consume a playback acknowledgement. Returns True if it was handled."""
        return False

    def close(self) -> None:
        """Release resources."""
        return None

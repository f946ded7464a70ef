"""Plays utterances in the browser that drives the session."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict

from .base import AudioHandle, AudioSink

logger = logging.getLogger(__name__)


class WebSocketAudioSink(AudioSink):
    """
    Sends audio to the client and waits for it to report back.

    Outgoing:  {"type": "audio", "id", "audio", "format"}, {"type": "audio_stop", "id"}
    Incoming:  {"type": "audio_ended", "id"}, {"type": "audio_error", "id", "error"}
    """

    name = "websocket"

    def __init__(self, send: Callable[[Dict[str, Any]], None], audio_format: str = "mp3"):
        self._send = send
        self.audio_format = audio_format
        self._handles: Dict[str, AudioHandle] = {}

    def play(self, audio_b64: str) -> AudioHandle:
        handle = AudioHandle(uuid.uuid4().hex[:12], on_stop=self._on_stop)
        self._handles[handle.id] = handle
        self._send({"type": "audio", "id": handle.id, "audio": audio_b64, "format": self.audio_format})
        return handle

    def _on_stop(self, handle: AudioHandle) -> None:
        self._handles.pop(handle.id, None)
        self._send({"type": "audio_stop", "id": handle.id})

    def handle_client_message(self, message: Dict[str, Any]) -> bool:
        kind = message.get("type")
        if kind not in ("audio_ended", "audio_error"):
            return False
        handle = self._handles.pop(str(message.get("id")), None)
        if handle is None:
            # Ack for an utterance that was already stopped.
            return True
        if kind == "audio_error":
            handle.finish(error=str(message.get("error") or "playback failed"))
        else:
            handle.finish()
        return True

    def close(self) -> None:
        for handle in list(self._handles.values()):
            handle.stop()
        self._handles.clear()

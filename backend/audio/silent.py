"""Sink for headless runs: every utterance counts as played immediately."""

import uuid

from .base import AudioHandle, AudioSink


class SilentAudioSink(AudioSink):
    name = "silent"

    def __init__(self, **_):
        self.played = 0

    def play(self, audio_b64: str) -> AudioHandle:
        handle = AudioHandle(uuid.uuid4().hex[:12])
        handle.finish()
        self.played += 1
        return handle

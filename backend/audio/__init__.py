"""Audio sink registry.

Lets the session server pick where utterances are played (the client's
browser, or nowhere for headless runs) without touching the speech engine.
"""

from typing import Dict, Type

from .base import AudioHandle, AudioSink
from .silent import SilentAudioSink
from .websocket_sink import WebSocketAudioSink


AUDIO_SINK_REGISTRY: Dict[str, Type[AudioSink]] = {
    WebSocketAudioSink.name: WebSocketAudioSink,
    SilentAudioSink.name: SilentAudioSink,
}


def get_available_sinks():
    """Return the list of registered sink names."""
    return list(AUDIO_SINK_REGISTRY.keys())


def build_audio_sink(name: str, **kwargs) -> AudioSink:
    """Instantiate an audio sink by registry name."""
    sink_cls = AUDIO_SINK_REGISTRY.get(name)
    if not sink_cls:
        raise ValueError(
            f"Unknown audio sink '{name}'. "
            f"Available options: {', '.join(get_available_sinks())}"
        )
    return sink_cls(**kwargs)


__all__ = ["AudioHandle", "AudioSink", "build_audio_sink", "get_available_sinks"]

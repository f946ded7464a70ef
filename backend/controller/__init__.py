"""
Guided session controller.

Three components:
1. PhaseStateMachine - drives loading/description/waiting/feedback/moving
2. SessionLifecycleCoordinator - timers, tasks, evaluation guard, teardown
3. SessionState - the typed session struct both of them work on
"""

from typing import Any, Callable, Dict, Tuple

from audio import AudioSink, build_audio_sink
from clients import GoogleTTSClient, PoseComparisonClient, RoutineApiClient
from coaches import PhraseBook, SpeechCueEngine
from config import SessionConfig

from .lifecycle import SessionLifecycleCoordinator
from .phase_machine import PhaseStateMachine
from .session_state import Phase, SessionState


def build_guided_session(
    config: SessionConfig,
    routine_id: str,
    send: Callable[[Dict[str, Any]], None],
) -> Tuple[PhaseStateMachine, AudioSink]:
    """
    Wire a phase machine to real clients.

    `send` delivers outgoing messages (state updates, audio, navigation) to
    the client; it must not block.
    """
    sink = build_audio_sink(config.audio_sink, send=send)
    tts = None
    if config.tts_api_key:
        tts = GoogleTTSClient(config.tts_api_key, voice_name=config.voice_name, timeout=config.tts_timeout)
    speech = SpeechCueEngine(
        tts, sink, language_code=config.language_code, playback_timeout=config.playback_timeout
    )
    routine_api = RoutineApiClient(config.api_base_url, timeout=config.data_timeout)
    comparer = PoseComparisonClient(config.api_base_url, timeout=config.compare_timeout)

    closeables = [c for c in (routine_api, comparer, tts, sink) if c is not None]
    lifecycle = SessionLifecycleCoordinator(speech=speech, closeables=closeables)
    machine = PhaseStateMachine(
        config,
        routine_id,
        routine_api,
        comparer,
        speech,
        lifecycle,
        phrases=PhraseBook(config.language_code),
        on_event=send,
    )
    return machine, sink


__all__ = [
    "PhaseStateMachine",
    "SessionLifecycleCoordinator",
    "SessionState",
    "Phase",
    "build_guided_session",
]

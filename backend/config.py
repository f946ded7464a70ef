"""
Runtime configuration for the guided stretch session.

All timings are in seconds. Values come from environment variables so the
same image can be tuned per deployment; tests build SessionConfig directly
with millisecond-scale timings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_API_BASE_URL = "https://v-tune-be.onrender.com/api"
# Relative to the working directory the server is started from.
DEFAULT_STORE_PATH = Path("routine_store.json")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class SessionConfig:
    # Phase timings
    pose_wait_time: float = 15.0
    next_step_wait_time: float = 0.5
    description_debounce: float = 0.4
    completion_redirect_delay: float = 3.0

    # Remote call bounds
    compare_timeout: float = 8.0
    data_timeout: float = 5.0
    tts_timeout: float = 10.0
    playback_timeout: float = 60.0

    max_sets: int = 3

    api_base_url: str = DEFAULT_API_BASE_URL
    tts_api_key: Optional[str] = None
    language_code: str = "ko-KR"
    voice_name: str = "ko-KR-Standard-A"
    audio_sink: str = "websocket"

    routine_store_path: Path = DEFAULT_STORE_PATH
    results_path: str = "/record"
    home_path: str = "/"

    def __post_init__(self):
        if self.max_sets < 1:
            raise ValueError(f"max_sets must be at least 1, got {self.max_sets}")
        for name in (
            "pose_wait_time",
            "next_step_wait_time",
            "description_debounce",
            "completion_redirect_delay",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Build a config from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            pose_wait_time=_env_float("POSE_WAIT_TIME", defaults.pose_wait_time),
            next_step_wait_time=_env_float("NEXT_STEP_WAIT_TIME", defaults.next_step_wait_time),
            description_debounce=_env_float("DESCRIPTION_DEBOUNCE", defaults.description_debounce),
            completion_redirect_delay=_env_float(
                "COMPLETION_REDIRECT_DELAY", defaults.completion_redirect_delay
            ),
            compare_timeout=_env_float("COMPARE_TIMEOUT", defaults.compare_timeout),
            data_timeout=_env_float("DATA_TIMEOUT", defaults.data_timeout),
            tts_timeout=_env_float("TTS_TIMEOUT", defaults.tts_timeout),
            playback_timeout=_env_float("PLAYBACK_TIMEOUT", defaults.playback_timeout),
            max_sets=_env_int("MAX_SETS", defaults.max_sets),
            api_base_url=os.getenv("STRETCH_API_BASE_URL", defaults.api_base_url),
            tts_api_key=os.getenv("GOOGLE_TTS_API_KEY") or None,
            language_code=os.getenv("TTS_LANGUAGE_CODE", defaults.language_code),
            voice_name=os.getenv("TTS_VOICE_NAME", defaults.voice_name),
            audio_sink=os.getenv("AUDIO_SINK", defaults.audio_sink),
            routine_store_path=Path(
                os.getenv("ROUTINE_STORE_PATH", str(defaults.routine_store_path))
            ),
            results_path=os.getenv("RESULTS_PATH", defaults.results_path),
            home_path=os.getenv("HOME_PATH", defaults.home_path),
        )

    def to_dict(self):
        return {
            "pose_wait_time": self.pose_wait_time,
            "next_step_wait_time": self.next_step_wait_time,
            "description_debounce": self.description_debounce,
            "completion_redirect_delay": self.completion_redirect_delay,
            "compare_timeout": self.compare_timeout,
            "max_sets": self.max_sets,
            "api_base_url": self.api_base_url,
            "language_code": self.language_code,
            "audio_sink": self.audio_sink,
            "tts_enabled": bool(self.tts_api_key),
        }

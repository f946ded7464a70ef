"""
Voice coaching for guided stretch sessions.

Two components:
1. SpeechCueEngine - single-flight spoken utterances (synthesis + playback)
2. PhraseBook - per-language cue texts and placeholder strings
"""

from .phrases import PhraseBook
from .speech_cues import SpeechCueEngine, SpeechOutcome

__all__ = ["PhraseBook", "SpeechCueEngine", "SpeechOutcome"]

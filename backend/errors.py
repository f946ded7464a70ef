"""
Error taxonomy for the guided stretch session.

Everything raised during the feedback phase is recoverable: the phase machine
turns it into a spoken retry message and re-enters the waiting phase.
DataLoadError is the only one that leaves the session parked in loading.
"""


class StretchSessionError(Exception):
    """Base class for all session controller errors."""


class DataLoadError(StretchSessionError):
    """Routine, exercise or pose-step data could not be fetched or parsed."""


class MissingLandmarksError(StretchSessionError):
    """No landmark snapshot was captured during the waiting phase."""


class MissingExerciseMetadataError(StretchSessionError):
    """The current exercise (or its id) is unknown, so nothing can be compared."""


class ComparisonError(StretchSessionError):
    """The pose comparison service failed or returned an unusable body."""


class ComparisonTimeoutError(ComparisonError):
    """The pose comparison service did not answer within the timeout."""


class SpeechSynthesisError(StretchSessionError):
    """The text-to-speech request failed at the transport level."""


class AudioPlaybackError(StretchSessionError):
    """The client reported that an utterance could not be played."""

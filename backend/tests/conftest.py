"""
Pytest configuration and fixtures for the guided session backend.

Fixtures:
    - fast_config: SessionConfig with millisecond timings
    - landmarks: a full 33-point MediaPipe landmark list
    - build_machine: factory wiring a PhaseStateMachine to fakes
"""

import asyncio
import base64
from typing import Any, Dict, List, Optional

import pytest

from audio import AudioHandle, AudioSink
from clients import CompareResult
from coaches import PhraseBook, SpeechCueEngine
from config import SessionConfig
from controller import PhaseStateMachine, SessionLifecycleCoordinator
from errors import DataLoadError
from routine import Exercise, PoseStep, Routine


# ============================================================================
# Helpers
# ============================================================================

async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.002):
    """Poll predicate on the loop until it holds or the timeout passes."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached within %.2fs" % timeout)
        await asyncio.sleep(interval)


def make_landmarks(offset: float = 0.0) -> List[Dict[str, float]]:
    return [
        {"x": 0.1 + i * 0.01 + offset, "y": 0.2 + i * 0.01, "z": 0.0, "visibility": 0.9}
        for i in range(33)
    ]


async def feed_camera(machine: PhaseStateMachine, interval: float = 0.002):
    """Stand-in for the client's pose pipeline: a sample every few ms, forever."""
    while True:
        machine.submit_landmarks(make_landmarks())
        await asyncio.sleep(interval)


# ============================================================================
# Fakes
# ============================================================================

class FakeRoutineApi:
    def __init__(
        self,
        exercises: List[Dict[str, Any]],
        steps: Dict[int, List[Dict[str, Any]]],
        fail_exercises: bool = False,
        fail_steps: Optional[set] = None,
    ):
        self.exercises = exercises
        self.steps = steps
        self.fail_exercises = fail_exercises
        self.fail_steps = fail_steps or set()
        self.step_requests: List[int] = []
        self.closed = False

    async def fetch_exercises(self, routine_id: str) -> Routine:
        await asyncio.sleep(0)
        if self.fail_exercises:
            raise DataLoadError("routine backend unavailable")
        return Routine(routine_id, [Exercise.model_validate(e) for e in self.exercises])

    async def fetch_pose_steps(self, exercise_id: int) -> List[PoseStep]:
        await asyncio.sleep(0)
        self.step_requests.append(exercise_id)
        if exercise_id in self.fail_steps:
            raise DataLoadError("pose steps unavailable")
        return [PoseStep.model_validate(s) for s in self.steps.get(exercise_id, [])]

    def close(self):
        self.closed = True


class Hang:
    """Script item: block the comparison until released, then answer `result`."""

    def __init__(self, result: bool = True):
        self.result = result
        self.release = asyncio.Event()


class ScriptedComparer:
    """
    Answers comparisons from a script of booleans, exceptions or Hang items.
    Once the script runs out, every call answers `default`.
    """

    def __init__(self, script=(), default: bool = False, feedback_text: Optional[str] = None):
        self.script = list(script)
        self.default = default
        self.feedback_text = feedback_text
        self.calls: List[Dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def compare(self, keypoints, exercise_id, step_number) -> CompareResult:
        loop = asyncio.get_running_loop()
        self.calls.append(
            {"keypoints": keypoints, "exercise_id": exercise_id, "step_number": step_number, "at": loop.time()}
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            item = self.script.pop(0) if self.script else self.default
            if isinstance(item, Hang):
                await item.release.wait()
                item = item.result
            if isinstance(item, BaseException):
                raise item
            return CompareResult(match=bool(item), feedback_text=self.feedback_text)
        finally:
            self.in_flight -= 1

    def close(self):
        self.closed = True


class FakeTTS:
    def __init__(self, fail: bool = False, silent: bool = False):
        self.fail = fail
        self.silent = silent
        self.texts: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}

    async def synthesize(self, text: str, language_code: str) -> Optional[str]:
        self.texts.append(text)
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("synthesis backend down")
        if self.silent:
            return None
        return base64.b64encode(text.encode("utf-8")).decode("ascii")


class RecordingAudioSink(AudioSink):
    """
    Sink that finishes each utterance after `delay` seconds
    (or never, with delay=None) and remembers what it played.
    """

    name = "recording"

    def __init__(self, delay: Optional[float] = 0.0):
        self.delay = delay
        self.handles: List[AudioHandle] = []
        self.texts: List[str] = []
        self.max_playing = 0

    @property
    def playing(self) -> List[AudioHandle]:
        return [h for h in self.handles if not h.done]

    def play(self, audio_b64: str) -> AudioHandle:
        handle = AudioHandle("h%d" % len(self.handles))
        self.handles.append(handle)
        self.texts.append(base64.b64decode(audio_b64).decode("utf-8"))
        self.max_playing = max(self.max_playing, len(self.playing))
        if self.delay is not None:
            asyncio.get_running_loop().call_later(self.delay, handle.finish)
        return handle


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fast_config(tmp_path):
    return SessionConfig(
        pose_wait_time=0.02,
        next_step_wait_time=0.01,
        description_debounce=0.005,
        completion_redirect_delay=0.05,
        compare_timeout=0.2,
        playback_timeout=1.0,
        max_sets=1,
        language_code="en-US",
        routine_store_path=tmp_path / "routine_store.json",
    )


@pytest.fixture
def landmarks():
    return make_landmarks()


class MachineRig:
    """A phase machine plus the fakes around it and the events it emitted."""

    def __init__(self, machine, api, comparer, tts, sink, events):
        self.machine = machine
        self.api = api
        self.comparer = comparer
        self.tts = tts
        self.sink = sink
        self.events = events

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]


@pytest.fixture
def build_machine(fast_config):
    def _build(
        exercises=None,
        steps=None,
        script=(),
        default=False,
        config: Optional[SessionConfig] = None,
        tts: Optional[FakeTTS] = None,
        sink: Optional[RecordingAudioSink] = None,
        fail_exercises: bool = False,
        fail_steps: Optional[set] = None,
        feedback_text: Optional[str] = None,
    ) -> MachineRig:
        config = config or fast_config
        if exercises is None:
            exercises = [{"exercise_id": 1, "name": "Neck stretch", "description": "", "repetition": 1, "order": 1}]
        if steps is None:
            steps = {
                1: [
                    {"id": 11, "step_number": 10, "keypoints": "{}", "pose_description": "Tilt your head left", "exercise": 1},
                    {"id": 12, "step_number": 20, "keypoints": "{}", "pose_description": "Tilt your head right", "exercise": 1},
                ]
            }
        api = FakeRoutineApi(exercises, steps, fail_exercises=fail_exercises, fail_steps=fail_steps)
        comparer = ScriptedComparer(script, default=default, feedback_text=feedback_text)
        sink = sink or RecordingAudioSink()
        speech = SpeechCueEngine(tts, sink, language_code=config.language_code,
                                 playback_timeout=config.playback_timeout)
        lifecycle = SessionLifecycleCoordinator(speech=speech, closeables=[api, comparer])
        events: List[Dict[str, Any]] = []

        def record(event):
            event = dict(event)
            event["at"] = asyncio.get_running_loop().time()
            events.append(event)

        machine = PhaseStateMachine(
            config,
            "routine-1",
            api,
            comparer,
            speech,
            lifecycle,
            phrases=PhraseBook(config.language_code),
            on_event=record,
        )
        return MachineRig(machine, api, comparer, tts, sink, events)

    return _build

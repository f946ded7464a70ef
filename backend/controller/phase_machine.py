"""
Phase State Machine - the guided session orchestrator.

Phases:
    loading -> description -> waiting -> feedback -> moving -> loading (next)
                                 ^            |
                                 +------------+  (no match / any error)

Timers fire the transitions out of loading (debounce), waiting (pose wait)
and moving (next-step delay). Description and feedback end when their
utterance ends. Every failure in feedback is spoken and retried on the same
fixed wait, forever; nothing backs off.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from coaches import PhraseBook, SpeechCueEngine
from config import SessionConfig
from errors import (
    ComparisonError,
    DataLoadError,
    MissingExerciseMetadataError,
    MissingLandmarksError,
)
from progression import Position, RoutineProgressionTracker

from .lifecycle import SessionLifecycleCoordinator
from .session_state import Phase, SessionState

logger = logging.getLogger(__name__)

EventCallback = Callable[[Dict[str, Any]], None]


class PhaseStateMachine:
    """
    Drives one session through a routine.

    Events are reported through on_event as plain dicts:
        {"type": "state", ...SessionState.to_dict()}
        {"type": "feedback", "match": bool, "text": str}
        {"type": "progress", "kind": "step"|"set"|"exercise"|"complete", ...}
        {"type": "complete", "routine_id": str}
        {"type": "navigate", "to": str}

    Usage:
        machine = PhaseStateMachine(config, "3", api, comparer, speech, lifecycle, on_event=send)
        machine.start()
        machine.submit_landmarks(pose_result["landmarks"])  # from the camera pipeline
        machine.close()                                      # on disconnect
    """

    TIMER_DESCRIPTION = "description"
    TIMER_WAIT = "wait"
    TIMER_MOVE = "move"
    TIMER_NAVIGATE = "navigate"

    def __init__(
        self,
        config: SessionConfig,
        routine_id: str,
        routine_api,
        comparer,
        speech: SpeechCueEngine,
        lifecycle: SessionLifecycleCoordinator,
        phrases: Optional[PhraseBook] = None,
        tracker: Optional[RoutineProgressionTracker] = None,
        on_event: Optional[EventCallback] = None,
    ):
        self.config = config
        self._api = routine_api
        self._comparer = comparer
        self._speech = speech
        self._lifecycle = lifecycle
        self.phrases = phrases or PhraseBook(config.language_code)
        self.tracker = tracker or RoutineProgressionTracker(config.max_sets)
        self._on_event = on_event

        self.state = SessionState(routine_id=str(routine_id))
        self.state.exercise_name = self.phrases.get("loading_name")
        self.state.description = self.phrases.get("loading_description")

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def lifecycle(self) -> SessionLifecycleCoordinator:
        return self._lifecycle

    # --- outside inputs -----------------------------------------------

    def start(self):
        """Load the routine and its first exercise. Returns the loading task."""
        self._emit_state()
        return self._lifecycle.spawn(self._load_routine(), name="load-routine")

    def submit_landmarks(self, landmarks: Any) -> bool:
        """Camera callback. Samples outside the waiting phase are dropped."""
        if self.state.phase is not Phase.WAITING:
            return False
        return self.state.buffer.write(landmarks)

    def snapshot(self) -> Dict[str, Any]:
        return self.state.to_dict()

    def close(self, reason: str = "client disconnected") -> None:
        self._lifecycle.teardown(reason)
        self.state.buffer.disarm()

    # --- events -------------------------------------------------------

    def _emit(self, event_type: str, **payload: Any) -> None:
        if self._on_event is None or self._lifecycle.closed:
            return
        try:
            self._on_event({"type": event_type, **payload})
        except Exception as e:
            logger.error("Event listener failed on %s: %s", event_type, e)

    def _emit_state(self) -> None:
        self._emit("state", **self.state.to_dict())

    def _set_phase(self, phase: Phase) -> None:
        previous = self.state.phase
        self.state.phase = phase
        if phase is not Phase.WAITING:
            self.state.buffer.disarm()
        if previous is not phase:
            logger.info(
                "Phase %s -> %s (exercise %d, step %d, set %d)",
                previous.value,
                phase.value,
                *self.state.position.as_tuple(),
            )
        self._emit_state()

    # --- loading ------------------------------------------------------

    async def _load_routine(self) -> None:
        generation = self._lifecycle.generation
        try:
            routine = await self._api.fetch_exercises(self.state.routine_id)
        except DataLoadError as e:
            logger.error("Failed to load routine %s: %s", self.state.routine_id, e)
            self._show_load_failure(name=True)
            return
        if self._lifecycle.is_stale(generation):
            return

        if not routine.exercises:
            logger.error("Routine %s has no exercises", self.state.routine_id)
            self._show_load_failure(name=True)
            return

        self.state.exercises = list(routine.exercises)
        self.state.position = Position()
        await self._load_exercise()

    async def _load_exercise(self) -> None:
        """Fetch pose steps for the exercise at the current position."""
        generation = self._lifecycle.generation
        exercise = self.state.current_exercise
        self.state.pose_steps = []
        self.state.exercise_name = (exercise.name if exercise else None) or self.phrases.get("no_name")
        self.state.description = self.phrases.get("loading_description")
        self._set_phase(Phase.LOADING)

        if exercise is None or not exercise.has_id:
            logger.error("Exercise at index %d has no id", self.state.position.exercise_index)
            self._show_load_failure(name=False)
            return

        try:
            steps = await self._api.fetch_pose_steps(exercise.exercise_id)
        except DataLoadError as e:
            logger.error("Failed to load pose steps of exercise %s: %s", exercise.exercise_id, e)
            self._show_load_failure(name=False)
            return
        if self._lifecycle.is_stale(generation):
            return

        if not steps:
            logger.error("Exercise %s has no pose steps", exercise.exercise_id)
            self._show_load_failure(name=False)
            return

        self.state.pose_steps = list(steps)
        self._enter_loading()

    def _show_load_failure(self, name: bool) -> None:
        # Not retried: the placeholders stay until the client reconnects.
        if name:
            self.state.exercise_name = self.phrases.get("no_name")
        self.state.description = self.phrases.get("no_description")
        self._emit_state()

    def _enter_loading(self) -> None:
        step = self.state.current_step
        if step is not None:
            self.state.description = step.pose_description or self.phrases.get("no_description")
        self._set_phase(Phase.LOADING)
        if step is None:
            return
        self._lifecycle.schedule(
            self.TIMER_DESCRIPTION, self.config.description_debounce, self._enter_description
        )

    # --- description --------------------------------------------------

    def _enter_description(self) -> None:
        self._set_phase(Phase.DESCRIPTION)
        generation = self._lifecycle.generation
        step = self.state.current_step
        # The "no pose description" placeholder is shown, never spoken.
        text = (step.pose_description or "") if step is not None else ""
        self._lifecycle.spawn(self._speak_description(text, generation), name="description")

    async def _speak_description(self, text: str, generation: int) -> None:
        # Success, failure or nothing to say, the description never holds the session up.
        await self._speech.enqueue(text)
        if self._lifecycle.is_stale(generation) or self.state.phase is not Phase.DESCRIPTION:
            return
        self._enter_waiting()

    # --- waiting ------------------------------------------------------

    def _enter_waiting(self) -> None:
        self._set_phase(Phase.WAITING)
        self.state.buffer.arm()
        self._lifecycle.end_evaluation()
        self._lifecycle.schedule(self.TIMER_WAIT, self.config.pose_wait_time, self._on_wait_expired)

    def _on_wait_expired(self) -> None:
        if self.state.phase is not Phase.WAITING:
            return
        if not self._lifecycle.begin_evaluation():
            logger.warning("Evaluation already in flight, skipping this wait expiry")
            return
        snapshot = self.state.buffer.take()
        self.state.evaluations += 1
        self._set_phase(Phase.FEEDBACK)
        generation = self._lifecycle.generation
        self._lifecycle.spawn(self._evaluate(snapshot, generation), name="evaluate")

    # --- feedback -----------------------------------------------------

    async def _evaluate(self, snapshot, generation: int) -> None:
        exercise = self.state.current_exercise
        step_number = self.state.step_number
        matched = False
        try:
            if not snapshot:
                raise MissingLandmarksError("No landmarks captured while waiting")
            if exercise is None or not exercise.has_id or step_number is None:
                raise MissingExerciseMetadataError("No exercise id for the current step")
            result = await self._comparer.compare(snapshot, exercise.exercise_id, step_number)
        except MissingLandmarksError as e:
            logger.warning("%s", e)
            text = self.phrases.get("not_recognized")
        except MissingExerciseMetadataError as e:
            logger.error("%s, skipping comparison", e)
            text = self.phrases.get("missing_exercise")
        except ComparisonError as e:
            logger.warning("Pose comparison failed: %s", e)
            text = self.phrases.get("network_error")
        except Exception as e:
            logger.exception("Unexpected pose comparison error: %s", e)
            text = self.phrases.get("network_error")
        else:
            matched = result.match
            text = self.phrases.feedback(result.match, result.feedback_text)

        if self._lifecycle.is_stale(generation):
            logger.info("Dropping evaluation result after teardown")
            return

        self._emit("feedback", match=matched, text=text)
        await self._speech.enqueue(text)
        if self._lifecycle.is_stale(generation):
            return

        if matched:
            self._enter_moving()
        else:
            self._enter_waiting()

    # --- moving -------------------------------------------------------

    def _enter_moving(self) -> None:
        self._set_phase(Phase.MOVING)
        self._lifecycle.schedule(self.TIMER_MOVE, self.config.next_step_wait_time, self._advance)

    def _advance(self) -> None:
        if self.state.phase is not Phase.MOVING:
            return
        result = self.tracker.advance(
            self.state.position,
            step_count=len(self.state.pose_steps),
            exercise_count=len(self.state.exercises),
        )
        self.state.position = result.position
        position = result.position
        self._emit(
            "progress",
            kind=result.kind.value,
            exercise_index=position.exercise_index,
            step_index=position.step_index,
            set_count=position.set_count,
        )

        if result.is_complete:
            self._complete()
        elif result.needs_exercise_load:
            self._lifecycle.spawn(self._load_exercise(), name="load-exercise")
        else:
            self._enter_loading()

    # --- completion ---------------------------------------------------

    def _complete(self) -> None:
        if self.state.completed:
            return
        self.state.completed = True
        logger.info("Routine %s complete", self.state.routine_id)
        self._emit_state()
        self._emit("complete", routine_id=self.state.routine_id)
        self._lifecycle.spawn(self._speech.enqueue(self.phrases.get("routine_complete")), name="complete")
        self._lifecycle.schedule(
            self.TIMER_NAVIGATE, self.config.completion_redirect_delay, self._navigate_to_results
        )

    def _navigate_to_results(self) -> None:
        self._emit("navigate", to=self.config.results_path)
        self.close("routine complete")

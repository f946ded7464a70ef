"""
Routine progression: where does the session go after a matched step?

The walk is exercise -> set -> step. A set is one full pass over the pose
steps of the current exercise; after max_sets passes the routine moves to
the next exercise, and after the last exercise it is complete.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, Sequence


class AdvanceKind(str, Enum):
    STEP = "step"          # next pose step, same set
    SET = "set"            # set finished, start the next pass over the steps
    EXERCISE = "exercise"  # all sets done, next exercise must be loaded
    COMPLETE = "complete"  # last set of the last exercise


@dataclass(frozen=True)
class Position:
    exercise_index: int = 0
    step_index: int = 0
    set_count: int = 0

    def as_tuple(self):
        return (self.exercise_index, self.step_index, self.set_count)


@dataclass(frozen=True)
class Advance:
    position: Position
    kind: AdvanceKind

    @property
    def needs_exercise_load(self) -> bool:
        return self.kind is AdvanceKind.EXERCISE

    @property
    def is_complete(self) -> bool:
        return self.kind is AdvanceKind.COMPLETE


class RoutineProgressionTracker:
    """
    Pure transition function over routine positions.

    The tracker holds no session state; callers pass the current position
    and the sizes that apply to it and get back the next position plus what
    kind of move it was.

    Usage:
        tracker = RoutineProgressionTracker(max_sets=3)
        result = tracker.advance(Position(), step_count=4, exercise_count=2)
    """

    def __init__(self, max_sets: int = 3):
        if max_sets < 1:
            raise ValueError(f"max_sets must be at least 1, got {max_sets}")
        self.max_sets = max_sets

    def advance(self, position: Position, step_count: int, exercise_count: int) -> Advance:
        """
        Compute the position after the current step was matched.

        Args:
            position: Current (exercise, step, set) position.
            step_count: Number of pose steps of the current exercise.
            exercise_count: Number of exercises in the routine.

        Returns:
            Advance with the next position and the kind of move.
        """
        if step_count < 1:
            raise ValueError("Cannot advance an exercise without pose steps")

        if position.step_index + 1 < step_count:
            return Advance(replace(position, step_index=position.step_index + 1), AdvanceKind.STEP)

        set_count = min(position.set_count + 1, self.max_sets)
        finished_set = replace(position, step_index=0, set_count=set_count)

        if set_count < self.max_sets:
            return Advance(finished_set, AdvanceKind.SET)

        if position.exercise_index + 1 < exercise_count:
            next_exercise = Position(exercise_index=position.exercise_index + 1)
            return Advance(next_exercise, AdvanceKind.EXERCISE)

        return Advance(finished_set, AdvanceKind.COMPLETE)

    def traverse(self, step_counts: Sequence[int]) -> Iterator[Advance]:
        """
        Yield every advance of a routine from its first step to completion.

        step_counts holds the number of pose steps of each exercise, in
        routine order.
        """
        position = Position()
        while True:
            result = self.advance(
                position,
                step_count=step_counts[position.exercise_index],
                exercise_count=len(step_counts),
            )
            yield result
            if result.is_complete:
                return
            position = result.position

    def total_matches(self, step_counts: Sequence[int]) -> int:
        """Number of matched steps needed to finish a routine."""
        return sum(count * self.max_sets for count in step_counts)

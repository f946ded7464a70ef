"""
Session state for a guided stretch routine.

A single mutable struct owned by the phase machine. Only the event loop
touches it, so plain fields are enough.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pose_buffer import PoseSampleBuffer
from progression import Position
from routine import Exercise, PoseStep


class Phase(str, Enum):
    LOADING = "loading"
    DESCRIPTION = "description"
    WAITING = "waiting"
    FEEDBACK = "feedback"
    MOVING = "moving"


@dataclass
class SessionState:
    routine_id: str
    exercises: List[Exercise] = field(default_factory=list)
    pose_steps: List[PoseStep] = field(default_factory=list)
    position: Position = field(default_factory=Position)
    phase: Phase = Phase.LOADING
    exercise_name: str = ""
    description: str = ""
    completed: bool = False
    evaluations: int = 0
    buffer: PoseSampleBuffer = field(default_factory=PoseSampleBuffer)

    @property
    def current_exercise(self) -> Optional[Exercise]:
        idx = self.position.exercise_index
        if 0 <= idx < len(self.exercises):
            return self.exercises[idx]
        return None

    @property
    def current_step(self) -> Optional[PoseStep]:
        idx = self.position.step_index
        if 0 <= idx < len(self.pose_steps):
            return self.pose_steps[idx]
        return None

    @property
    def step_number(self) -> Optional[int]:
        step = self.current_step
        return step.step_number if step else None

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot for the client overlay."""
        exercise = self.current_exercise
        return {
            "routine_id": self.routine_id,
            "phase": self.phase.value,
            "exercise_index": self.position.exercise_index,
            "exercise_id": exercise.exercise_id if exercise else None,
            "exercise_name": self.exercise_name,
            "exercise_count": len(self.exercises),
            "step_index": self.position.step_index,
            "step_number": self.step_number,
            "step_count": len(self.pose_steps),
            "set_count": self.position.set_count,
            "description": self.description,
            "completed": self.completed,
        }

"""
Routine data model.

Exercises and pose steps mirror the payloads of the routine backend. Order
is whatever the backend returns; nothing here renumbers or sorts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class Exercise(BaseModel):
    """One exercise of a routine, as listed by /routines/{id}/exercises/."""

    model_config = ConfigDict(extra="ignore")

    exercise_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    repetition: Optional[int] = None
    order: Optional[int] = None

    @property
    def has_id(self) -> bool:
        return self.exercise_id is not None


class PoseStep(BaseModel):
    """One target posture of an exercise, as returned by /data/pose-steps/."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    step_number: int
    # Matching template; only the comparison service understands it.
    keypoints: Any = None
    pose_description: Optional[str] = None
    exercise: Optional[int] = None


@dataclass
class Routine:
    routine_id: str
    exercises: List[Exercise] = field(default_factory=list)

"""
Routine backend client: exercises of a routine and pose steps of an exercise.

Failures are not retried here or by the caller; a failed load leaves the
session showing its placeholder texts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import requests
from pydantic import ValidationError

from errors import DataLoadError
from routine import Exercise, PoseStep, Routine

from .http import build_http_session, join_url, run_blocking

logger = logging.getLogger(__name__)


class RoutineApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._http = session or build_http_session()

    def _get_json(self, path: str, **params: Any) -> Any:
        resp = self._http.get(join_url(self.base_url, path), params=params or None, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def _fetch(self, path: str, **params: Any) -> Any:
        try:
            # Small grace over the requests timeout so requests reports first.
            return await run_blocking(self._get_json, path, timeout=self.timeout + 1.0, **params)
        except asyncio.TimeoutError as e:
            raise DataLoadError(f"GET {path} timed out after {self.timeout}s") from e
        except (requests.RequestException, ValueError) as e:
            raise DataLoadError(f"GET {path} failed: {e}") from e

    async def fetch_exercises(self, routine_id: str) -> Routine:
        """Load the ordered exercise list of a routine."""
        data = await self._fetch(f"routines/{routine_id}/exercises/")
        items = data.get("exercises") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise DataLoadError(f"Routine {routine_id} response has no exercise list")
        try:
            exercises = [Exercise.model_validate(item) for item in items]
        except ValidationError as e:
            raise DataLoadError(f"Routine {routine_id} has malformed exercises: {e}") from e
        logger.info("Loaded %d exercises for routine %s", len(exercises), routine_id)
        return Routine(routine_id=str(routine_id), exercises=exercises)

    async def fetch_pose_steps(self, exercise_id: int) -> List[PoseStep]:
        """Load pose steps of an exercise in the order the backend returns them."""
        data = await self._fetch("data/pose-steps/", exercise_id=exercise_id)
        if not isinstance(data, list):
            raise DataLoadError(f"Pose steps of exercise {exercise_id} are not a list")
        try:
            steps = [PoseStep.model_validate(item) for item in data]
        except ValidationError as e:
            raise DataLoadError(f"Exercise {exercise_id} has malformed pose steps: {e}") from e
        if steps:
            logger.info(
                "Loaded %d pose steps for exercise %s (last step number %s)",
                len(steps),
                exercise_id,
                steps[-1].step_number,
            )
        return steps

    def close(self) -> None:
        self._http.close()

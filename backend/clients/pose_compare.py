"""
Pose comparison client.

One POST per evaluation, bounded by a timeout, never retried here: the phase
machine repeats evaluations on its own fixed cadence. The comparison is a
pure function on the service side, so repeating it is harmless.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from errors import ComparisonError, ComparisonTimeoutError
from pose_buffer import Keypoints

from .http import build_http_session, join_url, run_blocking

logger = logging.getLogger(__name__)


class CompareResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    match: bool
    feedback_text: Optional[str] = None
    ck_text: Optional[str] = None


@dataclass(frozen=True)
class CompareResult:
    match: bool
    feedback_text: Optional[str] = None


class PoseComparisonClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 8.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._http = session or build_http_session()

    def _post(self, keypoints: Keypoints, exercise_id: int, step_number: int):
        body = {"keypoints": {name: [x, y] for name, (x, y) in keypoints.items()}}
        resp = self._http.post(
            join_url(self.base_url, "compare/"),
            json=body,
            params={"exercise_id": exercise_id, "step_number": step_number},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    async def compare(self, keypoints: Keypoints, exercise_id: int, step_number: int) -> CompareResult:
        """
        Ask the service whether the captured pose matches a step.

        Raises:
            ComparisonTimeoutError: no answer within the timeout.
            ComparisonError: transport failure, HTTP error or malformed body.
        """
        try:
            data = await run_blocking(
                self._post, keypoints, exercise_id, step_number, timeout=self.timeout
            )
        except (asyncio.TimeoutError, requests.Timeout) as e:
            raise ComparisonTimeoutError(
                f"Comparison for exercise {exercise_id} step {step_number} timed out"
            ) from e
        except (requests.RequestException, ValueError) as e:
            raise ComparisonError(f"Comparison request failed: {e}") from e

        try:
            parsed = CompareResponse.model_validate(data)
        except ValidationError as e:
            raise ComparisonError(f"Malformed comparison response: {data!r}") from e

        logger.info(
            "Compare exercise=%s step=%s -> match=%s", exercise_id, step_number, parsed.match
        )
        return CompareResult(match=parsed.match, feedback_text=parsed.feedback_text or parsed.ck_text)

    def close(self) -> None:
        self._http.close()

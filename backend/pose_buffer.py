"""Latest-landmark buffer fed by the client's pose pipeline."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# MediaPipe Pose landmark indices of the joints the comparison service scores.
REQUIRED_KEYS: Dict[str, int] = {
    "NOSE": 0,
    "LEFT_SHOULDER": 11,
    "RIGHT_SHOULDER": 12,
    "LEFT_ELBOW": 13,
    "RIGHT_ELBOW": 14,
    "LEFT_WRIST": 15,
    "RIGHT_WRIST": 16,
    "LEFT_HIP": 23,
    "RIGHT_HIP": 24,
    "LEFT_KNEE": 25,
    "RIGHT_KNEE": 26,
    "LEFT_ANKLE": 27,
    "RIGHT_ANKLE": 28,
}

Keypoints = Dict[str, Tuple[float, float]]


def _landmark_array(landmarks: Sequence[Any]) -> np.ndarray:
    """Turn [{x, y, ...}, ...] or [[x, y, ...], ...] into an (N, 2) float array."""
    rows: List[Tuple[float, float]] = []
    for lm in landmarks:
        if isinstance(lm, Mapping):
            rows.append((lm["x"], lm["y"]))
        else:
            rows.append((lm[0], lm[1]))
    return np.asarray(rows, dtype=float).reshape(-1, 2)


def extract_keypoints(landmarks: Any) -> Keypoints:
    """
    Select the required joints from a pose result.

    Accepts the full MediaPipe landmark list (dicts or coordinate rows, indexed
    by landmark id), an (N, >=2) array, or a mapping already keyed by joint
    name. Joints that are missing or not finite are left out, the same way the
    client drops landmarks it did not detect.
    """
    if landmarks is None:
        return {}

    if isinstance(landmarks, Mapping):
        keypoints: Keypoints = {}
        for name in REQUIRED_KEYS:
            value = landmarks.get(name)
            if value is None:
                continue
            x, y = float(value[0]), float(value[1])
            if np.isfinite(x) and np.isfinite(y):
                keypoints[name] = (x, y)
        return keypoints

    if isinstance(landmarks, np.ndarray):
        coords = np.asarray(landmarks, dtype=float)[:, :2]
    else:
        coords = _landmark_array(landmarks)

    keypoints = {}
    for name, idx in REQUIRED_KEYS.items():
        if idx >= len(coords):
            continue
        x, y = coords[idx]
        if np.isfinite(x) and np.isfinite(y):
            keypoints[name] = (float(x), float(y))
    return keypoints


class PoseSampleBuffer:
    """
    Holds the most recent keypoint snapshot.

    The camera pipeline writes continuously, but samples are only kept while
    the buffer is armed (the session is in its waiting phase). take() hands
    the snapshot out once and clears it; disarm() drops it.
    """

    def __init__(self):
        self._armed = False
        self._latest: Optional[Keypoints] = None
        self.samples_received = 0

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def latest(self) -> Optional[Keypoints]:
        return self._latest

    def arm(self) -> None:
        """Start accepting samples with an empty buffer."""
        self._latest = None
        self._armed = True

    def disarm(self) -> None:
        self._armed = False
        self._latest = None

    def write(self, landmarks: Any) -> bool:
        """Store a sample. Returns False when it was ignored."""
        if not self._armed:
            return False
        try:
            keypoints = extract_keypoints(landmarks)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Dropping malformed pose sample: %s", e)
            return False
        if not keypoints:
            return False
        self._latest = keypoints
        self.samples_received += 1
        return True

    def take(self) -> Optional[Keypoints]:
        """Return the snapshot and stop accepting samples."""
        snapshot = self._latest
        self.disarm()
        return snapshot

"""
HTTP clients for the services a guided session talks to:
1. RoutineApiClient - exercises of a routine and pose steps of an exercise
2. PoseComparisonClient - match verdict for a captured pose
3. GoogleTTSClient - speech synthesis
"""

from .pose_compare import CompareResult, PoseComparisonClient
from .routine_api import RoutineApiClient
from .tts import GoogleTTSClient

__all__ = ["CompareResult", "PoseComparisonClient", "RoutineApiClient", "GoogleTTSClient"]

"""
Fallback storage for the routine id.

Clients normally pass ?routineId=... when they open a session. The last id
seen is kept in a small JSON file so a reconnect without the parameter
resumes the same routine.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class RoutineIdStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable routine store %s: %s", self.path, e)
            return None
        value = data.get("routine_id") if isinstance(data, dict) else None
        return str(value) if value not in (None, "") else None

    def save(self, routine_id: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w") as f:
            json.dump({"routine_id": str(routine_id), "updated_at": _timestamp()}, f, indent=4)
        logger.debug("Stored routine id %s in %s", routine_id, self.path)


def resolve_routine_id(requested: Optional[str], store: RoutineIdStore) -> Optional[str]:
    """Prefer the id the client asked for (and remember it); else use the stored one."""
    if requested is not None and str(requested).strip():
        routine_id = str(requested).strip()
        try:
            store.save(routine_id)
        except OSError as e:
            logger.warning("Could not persist routine id %s: %s", routine_id, e)
        return routine_id
    return store.load()

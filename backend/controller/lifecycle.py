"""
Session Lifecycle Coordinator

Owns everything that must die with the session: named timers, spawned tasks,
the speech engine and the HTTP clients. Also holds the evaluation guard that
keeps at most one pose comparison in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set

logger = logging.getLogger(__name__)


class SessionLifecycleCoordinator:
    """
    Timers and tasks bound to one guided session.

    Timers are named; scheduling a name that is already pending replaces it,
    so a phase never has two timers of the same kind. teardown() bumps the
    generation, which is how in-flight work recognizes its result is stale.

    Usage:
        lifecycle = SessionLifecycleCoordinator(speech=engine, closeables=[api, comparer])
        lifecycle.schedule("wait", 15.0, on_wait_expired)
        generation = lifecycle.generation
        ...
        if lifecycle.is_stale(generation):
            return
    """

    def __init__(self, speech=None, closeables: Iterable[Any] = ()):
        self._speech = speech
        self._closeables = list(closeables)
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._evaluating = False
        self.generation = 0
        self.closed = False

    # --- timers -------------------------------------------------------

    def schedule(self, name: str, delay: float, callback: Callable[[], None]) -> Optional[asyncio.TimerHandle]:
        if self.closed:
            return None
        self.cancel(name)
        loop = asyncio.get_running_loop()

        def _fire():
            self._timers.pop(name, None)
            if not self.closed:
                callback()

        handle = loop.call_later(delay, _fire)
        self._timers[name] = handle
        return handle

    def cancel(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def is_pending(self, name: str) -> bool:
        return name in self._timers

    @property
    def pending_timers(self):
        return sorted(self._timers)

    # --- tasks --------------------------------------------------------

    def spawn(self, coro: Awaitable[Any], name: Optional[str] = None) -> Optional[asyncio.Task]:
        if self.closed:
            # Never started, so close it to avoid a "never awaited" warning.
            close = getattr(coro, "close", None)
            if close is not None:
                close()
            return None
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Session task %s failed: %r", task.get_name(), exc, exc_info=exc)

    # --- evaluation guard ----------------------------------------------

    @property
    def evaluating(self) -> bool:
        return self._evaluating

    def begin_evaluation(self) -> bool:
        """Claim the evaluation slot. False if one is already in flight."""
        if self._evaluating or self.closed:
            return False
        self._evaluating = True
        return True

    def end_evaluation(self) -> None:
        self._evaluating = False

    # --- teardown -----------------------------------------------------

    def is_stale(self, generation: int) -> bool:
        return self.closed or generation != self.generation

    def teardown(self, reason: str = "teardown") -> None:
        """Cancel timers and tasks, silence audio and close clients. Idempotent."""
        if self.closed:
            return
        self.closed = True
        self.generation += 1
        logger.info("Tearing down session (%s)", reason)

        for name in list(self._timers):
            self.cancel(name)

        current = None
        try:
            current = asyncio.current_task()
        except RuntimeError:
            pass
        for task in list(self._tasks):
            if task is not current:
                task.cancel()

        if self._speech is not None:
            self._speech.stop()

        for resource in self._closeables:
            try:
                resource.close()
            except Exception as e:
                logger.warning("Failed to close %r: %s", resource, e)

        self._evaluating = False

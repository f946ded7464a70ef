"""Tests for the session lifecycle coordinator."""

import asyncio

import pytest

from controller import SessionLifecycleCoordinator


class _Closeable:
    def __init__(self, fail=False):
        self.closed = False
        self.fail = fail

    def close(self):
        if self.fail:
            raise OSError("already gone")
        self.closed = True


class _Speech:
    def __init__(self):
        self.stops = 0

    def stop(self):
        self.stops += 1


@pytest.mark.asyncio
async def test_timer_fires_once():
    lifecycle = SessionLifecycleCoordinator()
    fired = []
    lifecycle.schedule("wait", 0.005, lambda: fired.append("wait"))
    assert lifecycle.is_pending("wait")

    await asyncio.sleep(0.03)
    assert fired == ["wait"]
    assert not lifecycle.is_pending("wait")


@pytest.mark.asyncio
async def test_rescheduling_a_name_replaces_the_timer():
    lifecycle = SessionLifecycleCoordinator()
    fired = []
    lifecycle.schedule("wait", 0.005, lambda: fired.append("old"))
    lifecycle.schedule("wait", 0.01, lambda: fired.append("new"))

    await asyncio.sleep(0.04)
    assert fired == ["new"]


@pytest.mark.asyncio
async def test_evaluation_guard_allows_one_at_a_time():
    lifecycle = SessionLifecycleCoordinator()
    assert lifecycle.begin_evaluation()
    assert not lifecycle.begin_evaluation()
    assert lifecycle.evaluating
    lifecycle.end_evaluation()
    assert lifecycle.begin_evaluation()


@pytest.mark.asyncio
async def test_teardown_cancels_everything():
    speech = _Speech()
    resources = [_Closeable(), _Closeable(fail=True), _Closeable()]
    lifecycle = SessionLifecycleCoordinator(speech=speech, closeables=resources)
    fired = []
    lifecycle.schedule("wait", 0.01, lambda: fired.append("wait"))
    task = lifecycle.spawn(asyncio.sleep(10), name="sleeper")
    generation = lifecycle.generation
    lifecycle.begin_evaluation()

    lifecycle.teardown("test")
    await asyncio.sleep(0.03)

    assert fired == []
    assert task.cancelled()
    assert speech.stops == 1
    assert resources[0].closed and resources[2].closed
    assert lifecycle.is_stale(generation)
    assert not lifecycle.evaluating
    assert not lifecycle.begin_evaluation()


@pytest.mark.asyncio
async def test_teardown_is_idempotent():
    speech = _Speech()
    lifecycle = SessionLifecycleCoordinator(speech=speech)
    lifecycle.teardown()
    lifecycle.teardown()
    assert speech.stops == 1
    assert lifecycle.generation == 1


@pytest.mark.asyncio
async def test_nothing_starts_after_teardown():
    lifecycle = SessionLifecycleCoordinator()
    lifecycle.teardown()

    assert lifecycle.schedule("wait", 0.001, lambda: None) is None
    assert lifecycle.spawn(asyncio.sleep(0)) is None
    assert lifecycle.pending_timers == []


@pytest.mark.asyncio
async def test_finished_tasks_are_forgotten():
    lifecycle = SessionLifecycleCoordinator()

    async def boom():
        raise RuntimeError("bad")

    ok = lifecycle.spawn(asyncio.sleep(0))
    failed = lifecycle.spawn(boom())
    await asyncio.sleep(0.01)

    assert ok.done() and failed.done()
    assert lifecycle._tasks == set()

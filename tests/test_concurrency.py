"""Tests for the bounded concurrency runner."""

import asyncio

import pytest

from amzwp_core.concurrency import AuditController, CancelToken, run_concurrent


async def test_never_exceeds_limit():
    in_flight = 0
    peak = 0
    done = []

    async def task(item):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        done.append(item)

    stats = await run_concurrent(range(20), 3, task)

    assert peak == 3
    assert sorted(done) == list(range(20))
    assert stats.total == 20
    assert stats.succeeded == 20


async def test_fewer_items_than_limit():
    seen = []

    async def task(item):
        seen.append(item)

    stats = await run_concurrent(["a", "b"], 10, task)
    assert sorted(seen) == ["a", "b"]
    assert stats.succeeded == 2


async def test_item_failure_is_isolated():
    done = []

    async def task(item):
        if item == 3:
            raise RuntimeError("boom")
        await asyncio.sleep(0)
        done.append(item)

    stats = await run_concurrent(range(8), 2, task)

    assert stats.failed == 1
    assert stats.succeeded == 7
    assert sorted(done) == [0, 1, 2, 4, 5, 6, 7]


async def test_mixed_failures_attempt_every_item_once():
    attempts = []
    failing = {2, 9, 17, 25, 36}

    async def task(item):
        attempts.append(item)
        await asyncio.sleep(0.001 * (item % 3))
        if item in failing:
            raise ValueError(f"item {item}")

    stats = await run_concurrent(range(37), 10, task)

    assert stats.total == 37
    assert stats.succeeded == 32
    assert stats.failed == 5
    assert sorted(attempts) == list(range(37))


async def test_cancel_stops_pulling_new_items():
    token = CancelToken(1)
    done = []

    async def task(item):
        done.append(item)
        token.cancel()

    stats = await run_concurrent(range(10), 1, task, token)

    assert done == [0]
    assert stats.skipped == 9


async def test_empty_input():
    async def task(item):
        raise AssertionError("never called")

    stats = await run_concurrent([], 5, task)
    assert stats.total == 0


async def test_invalid_limit():
    async def task(item):
        pass

    with pytest.raises(ValueError):
        await run_concurrent([1], 0, task)


class TestAuditController:

    def test_begin_cancels_previous_run(self):
        controller = AuditController()
        first = controller.begin()
        second = controller.begin()
        assert first.cancelled
        assert not second.cancelled
        assert controller.is_current(second)
        assert not controller.is_current(first)

    def test_cancel(self):
        controller = AuditController()
        token = controller.begin()
        controller.cancel()
        assert token.cancelled
        assert not controller.is_current(token)

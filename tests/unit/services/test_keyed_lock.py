"""Tests for KeyedLock."""

import asyncio

import pytest

from src.core.services.keyed_lock import KeyedLock


class TestKeyedLock:
    async def test_serializes_same_key(self):
        locks = KeyedLock()
        active = 0
        peak = 0

        async def worker():
            nonlocal active, peak
            async with locks.hold(1):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(5)))
        assert peak == 1

    async def test_different_keys_run_concurrently(self):
        locks = KeyedLock()
        first_entered = asyncio.Event()
        release = asyncio.Event()

        async def holder():
            async with locks.hold(1):
                first_entered.set()
                await release.wait()

        task = asyncio.create_task(holder())
        await first_entered.wait()

        async with locks.hold(2):
            assert locks.locked(1)
            assert locks.locked(2)

        release.set()
        await task

    async def test_overlapping_sets_do_not_deadlock(self):
        locks = KeyedLock()
        order = []

        async def worker(name, keys):
            async with locks.hold(*keys):
                order.append(name)
                await asyncio.sleep(0.005)

        await asyncio.wait_for(
            asyncio.gather(
                worker("a", [1, 2, 3]),
                worker("b", [3, 2, 1]),
                worker("c", [2, 3]),
            ),
            timeout=2,
        )
        assert sorted(order) == ["a", "b", "c"]

    async def test_duplicate_keys_are_ignored(self):
        locks = KeyedLock()
        async with locks.hold(4, 4, 4):
            assert locks.locked(4)
        assert not locks.locked(4)

    async def test_registry_is_emptied(self):
        locks = KeyedLock()
        async with locks.hold(1, 2):
            assert len(locks) == 2
        assert len(locks) == 0

    async def test_released_on_error(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold(1):
                raise RuntimeError("boom")
        assert not locks.locked(1)
        assert len(locks) == 0

    async def test_cancelled_waiter_is_cleaned_up(self):
        locks = KeyedLock()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def holder():
            async with locks.hold(1):
                entered.set()
                await release.wait()

        async def waiter():
            async with locks.hold(1):
                pass

        holding = asyncio.create_task(holder())
        await entered.wait()
        waiting = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        waiting.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiting

        release.set()
        await holding
        assert len(locks) == 0

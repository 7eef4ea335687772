from __future__ import annotations

import asyncio

import allure
import pytest

from dlfmt_shim.runner import ConcurrencyGate

pytestmark = [
    allure.epic("Formatter Runner"),
    allure.feature("Concurrency Gate"),
]


def test_gate_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError, match="max_concurrency"):
        ConcurrencyGate(0)


def test_acquire_below_capacity_completes_immediately() -> None:
    async def scenario() -> None:
        gate = ConcurrencyGate(2)
        await gate.acquire()
        await gate.acquire()
        assert gate.running == 2
        assert gate.waiting == 0
        assert gate.locked()

    asyncio.run(scenario())


def test_waiters_are_admitted_in_arrival_order() -> None:
    admitted: list[str] = []

    async def worker(gate: ConcurrencyGate, name: str, release: asyncio.Event) -> None:
        async with gate:
            admitted.append(name)
            await release.wait()

    async def scenario() -> None:
        gate = ConcurrencyGate(1)
        events = {name: asyncio.Event() for name in "abcd"}
        tasks = []
        for name in "abcd":
            tasks.append(asyncio.create_task(worker(gate, name, events[name])))
            await asyncio.sleep(0)
        assert admitted == ["a"]
        assert gate.waiting == 3

        for name in "abcd":
            events[name].set()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
        await asyncio.gather(*tasks)
        assert gate.running == 0

    asyncio.run(scenario())
    assert admitted == ["a", "b", "c", "d"]


def test_release_hands_slot_directly_to_head_waiter() -> None:
    async def scenario() -> None:
        gate = ConcurrencyGate(2)
        await gate.acquire()
        await gate.acquire()
        waiters = [asyncio.create_task(gate.acquire()) for _ in range(2)]
        await asyncio.sleep(0)
        assert gate.waiting == 2

        gate.release()

        assert gate.running == 2
        assert gate.waiting == 1
        assert gate.locked()
        await waiters[0]
        assert not waiters[1].done()

        gate.release()
        await waiters[1]
        assert gate.running == 2
        assert gate.waiting == 0

    asyncio.run(scenario())


def test_running_never_exceeds_capacity() -> None:
    peak = 0

    async def worker(gate: ConcurrencyGate) -> None:
        nonlocal peak
        async with gate:
            peak = max(peak, gate.running)
            assert gate.running <= gate.max_concurrency
            await asyncio.sleep(0.01)

    async def scenario() -> ConcurrencyGate:
        gate = ConcurrencyGate(3)
        await asyncio.gather(*(worker(gate) for _ in range(10)))
        return gate

    gate = asyncio.run(scenario())
    assert peak == 3
    assert gate.running == 0


def test_release_without_acquire_raises() -> None:
    gate = ConcurrencyGate(1)

    with pytest.raises(ValueError, match="released more times"):
        gate.release()


def test_cancelled_waiter_leaves_queue() -> None:
    async def scenario() -> None:
        gate = ConcurrencyGate(1)
        await gate.acquire()
        cancelled = asyncio.create_task(gate.acquire())
        survivor = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)
        assert gate.waiting == 2

        cancelled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cancelled
        assert gate.waiting == 1

        gate.release()
        await survivor
        assert gate.running == 1
        assert gate.waiting == 0

    asyncio.run(scenario())


def test_cancel_after_handoff_passes_slot_on() -> None:
    async def scenario() -> None:
        gate = ConcurrencyGate(1)
        await gate.acquire()
        first = asyncio.create_task(gate.acquire())
        second = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)

        gate.release()
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        await second
        assert gate.running == 1
        assert gate.waiting == 0

    asyncio.run(scenario())

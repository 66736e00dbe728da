import asyncio

import pytest

from rapal.sweeper import SessionSweeper


def test_run_once_removes_idle_sessions(store, clock):
    store.get_or_create("lama")
    clock.advance(1000)
    store.get_or_create("baru")
    clock.advance(900)

    sweeper = SessionSweeper(store, interval=1800)

    assert sweeper.run_once() == ["lama"]
    assert list(store) == ["baru"]


def test_sweep_if_due_waits_for_interval(store, clock):
    sweeper = SessionSweeper(store, interval=1800)
    store.get_or_create("a")

    clock.advance(1799)
    assert sweeper.sweep_if_due() == []

    clock.advance(2)
    assert sweeper.sweep_if_due() == ["a"]

    # Due again, but "b" was active just now.
    store.get_or_create("b")
    clock.advance(1801)
    store.touch(store.get("b"))
    assert sweeper.sweep_if_due() == []
    assert "b" in store


@pytest.mark.asyncio
async def test_background_task_sweeps_periodically(store, clock):
    store.get_or_create("a")
    clock.advance(3600)
    sweeper = SessionSweeper(store, interval=0.01)

    sweeper.start()
    assert sweeper.running
    for _ in range(50):
        if "a" not in store:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert "a" not in store
    assert not sweeper.running


@pytest.mark.asyncio
async def test_start_is_idempotent_and_stop_without_start_is_safe(store):
    sweeper = SessionSweeper(store, interval=60)

    await sweeper.stop()

    sweeper.start()
    task = sweeper._task
    sweeper.start()
    assert sweeper._task is task

    await sweeper.stop()
    assert task.cancelled()

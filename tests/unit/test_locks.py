"""Tests for the per-entity keyed lock."""

import asyncio

import pytest

from annotab.core.locks import KeyedLock

pytestmark = pytest.mark.asyncio


async def test_same_key_is_serialized():
    locks = KeyedLock()
    events: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold("thread:c1"):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a:start", "a:end", "b:start", "b:end"]


async def test_different_keys_run_concurrently():
    locks = KeyedLock()
    events: list[str] = []

    async def worker(key: str) -> None:
        async with locks.hold(key):
            events.append(f"{key}:start")
            await asyncio.sleep(0.01)
            events.append(f"{key}:end")

    await asyncio.gather(worker("x"), worker("y"))

    assert events[:2] == ["x:start", "y:start"]


async def test_released_keys_are_forgotten():
    locks = KeyedLock()

    async with locks.hold("project:p1"):
        assert len(locks) == 1

    assert len(locks) == 0


async def test_lock_released_on_error():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.hold("thread:c1"):
            raise RuntimeError("boom")

    assert len(locks) == 0
    async with locks.hold("thread:c1"):
        pass

"""Tests for ExpiredStateSweeper."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from prometheus_client import REGISTRY

from swingbuddy.conversation.models import ConversationState
from swingbuddy.conversation.store import StateStore
from swingbuddy.conversation.stores import InMemoryStateStore, StateStoreCacheLayer
from swingbuddy.db.errors import StoreConnectionError
from swingbuddy.jobs.sweeper import ExpiredStateSweeper


@pytest.fixture
def backend() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def sweeper(backend, clock) -> ExpiredStateSweeper:
    return ExpiredStateSweeper(
        StateStoreCacheLayer(backend, clock=clock),
        interval_seconds=0.01,
        grace_seconds=3600,
        clock=clock,
    )


async def _save(backend: StateStore, user_id: str, clock, ttl: timedelta) -> None:
    await backend.save(
        ConversationState.start(user_id, "onboarding", "name", now=clock.now, ttl=ttl)
    )


class TestRunOnce:
    async def test_only_rows_past_grace_are_removed(self, sweeper, backend, clock) -> None:
        await _save(backend, "long-gone", clock, timedelta(minutes=1))
        await _save(backend, "recently-expired", clock, timedelta(hours=2))
        await _save(backend, "alive", clock, timedelta(hours=5))
        clock.advance(hours=3)

        assert await sweeper.run_once() == 1

        assert await backend.get("long-gone") is None
        assert await backend.get("recently-expired") is not None
        assert await backend.get("alive") is not None

    async def test_nothing_to_sweep(self, sweeper) -> None:
        assert await sweeper.run_once() == 0

    async def test_swept_rows_counted(self, sweeper, backend, clock) -> None:
        await _save(backend, "42", clock, timedelta(minutes=1))
        clock.advance(hours=2)
        before = REGISTRY.get_sample_value("swingbuddy_swept_states_total") or 0.0

        await sweeper.run_once()

        assert REGISTRY.get_sample_value("swingbuddy_swept_states_total") == before + 1


class TestLifecycle:
    async def test_start_and_stop(self, sweeper) -> None:
        await sweeper.start()
        assert sweeper.is_running is True

        await sweeper.stop()
        assert sweeper.is_running is False

    async def test_double_start_is_ignored(self, sweeper) -> None:
        await sweeper.start()
        task = sweeper._task

        await sweeper.start()
        assert sweeper._task is task

        await sweeper.stop()

    async def test_stop_when_not_running(self, sweeper) -> None:
        await sweeper.stop()
        assert sweeper.is_running is False

    async def test_loop_survives_store_errors(self, clock) -> None:
        calls = 0

        async def flaky(before, *, timeout=None):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise StoreConnectionError("refused")
            return 0

        backend = AsyncMock(spec=StateStore)
        backend.delete_expired.side_effect = flaky
        sweeper = ExpiredStateSweeper(
            StateStoreCacheLayer(backend, clock=clock),
            interval_seconds=0.01,
            clock=clock,
        )

        await sweeper.start()
        for _ in range(100):
            if backend.delete_expired.await_count >= 2:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert backend.delete_expired.await_count >= 2
        cutoff = backend.delete_expired.await_args_list[0].args[0]
        assert cutoff == clock.now - timedelta(hours=1)

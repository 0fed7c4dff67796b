"""Unit tests for PostgresStateStore with a mocked pool."""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from swingbuddy.conversation.models import ConversationState
from swingbuddy.conversation.stores import PostgresStateStore
from swingbuddy.db.errors import StoreConnectionError, StoreTimeoutError, ValidationError

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def conn() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def pool(conn: AsyncMock) -> MagicMock:
    pool = MagicMock()

    @asynccontextmanager
    async def acquire():
        yield conn

    pool.acquire = acquire
    pool.health_check = AsyncMock(return_value=True)
    return pool


@pytest.fixture
def store(pool: MagicMock) -> PostgresStateStore:
    return PostgresStateStore(pool, command_timeout=0.5)


def _row(**overrides):
    row = {
        "user_id": "42",
        "scenario_name": "onboarding",
        "step_name": "name",
        "data": json.dumps({"language": "ru"}),
        "expires_at": NOW + timedelta(hours=1),
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


async def _hang(*args, **kwargs):
    await asyncio.sleep(10)


class TestGet:
    async def test_row_mapped_to_state(self, store, conn) -> None:
        conn.fetchrow.return_value = _row()

        state = await store.get("42")

        assert state == ConversationState(
            user_id="42",
            scenario_name="onboarding",
            step_name="name",
            data={"language": "ru"},
            expires_at=NOW + timedelta(hours=1),
            updated_at=NOW,
        )

    async def test_decoded_jsonb_accepted(self, store, conn) -> None:
        conn.fetchrow.return_value = _row(data={"language": "en"})

        state = await store.get("42")

        assert state is not None
        assert state.data == {"language": "en"}

    async def test_missing_row(self, store, conn) -> None:
        conn.fetchrow.return_value = None
        assert await store.get("42") is None

    async def test_inconsistent_row_raises_validation_error(self, store, conn) -> None:
        conn.fetchrow.return_value = _row(step_name=None)

        with pytest.raises(ValidationError):
            await store.get("42")


class TestSave:
    async def test_upsert_parameters(self, store, conn) -> None:
        state = ConversationState.start(
            "42", "onboarding", "language", now=NOW, ttl=timedelta(hours=1)
        )

        await store.save(state)

        sql, *params = conn.execute.await_args.args
        assert "ON CONFLICT (user_id) DO UPDATE" in sql
        assert params == [
            "42",
            "onboarding",
            "language",
            "{}",
            NOW + timedelta(hours=1),
            NOW,
        ]


class TestDelete:
    async def test_delete_reports_affected_rows(self, store, conn) -> None:
        conn.execute.return_value = "DELETE 1"
        assert await store.delete("42") is True

        conn.execute.return_value = "DELETE 0"
        assert await store.delete("42") is False

    async def test_delete_expired_count(self, store, conn) -> None:
        conn.execute.return_value = "DELETE 7"

        assert await store.delete_expired(NOW) == 7
        assert conn.execute.await_args.args[1] == NOW


class TestStats:
    async def test_grouped_counts(self, store, conn) -> None:
        conn.fetch.return_value = [
            {"scenario_name": "onboarding", "total": 5, "expired": 2},
            {"scenario_name": "admin_panel", "total": 1, "expired": 1},
            {"scenario_name": None, "total": 2, "expired": 0},
        ]

        stats = await store.stats(NOW)

        assert stats.total == 8
        assert stats.expired == 3
        assert stats.active == 5
        assert stats.by_scenario == {"onboarding": 3}


class TestDeadlines:
    async def test_slow_query_raises_timeout(self, store, conn) -> None:
        conn.fetchrow.side_effect = _hang

        with pytest.raises(StoreTimeoutError) as exc_info:
            await store.get("42", timeout=0.01)

        assert exc_info.value.retryable is True

    async def test_timeout_is_a_connection_error(self, store, conn) -> None:
        conn.execute.side_effect = _hang

        with pytest.raises(StoreConnectionError):
            await store.delete("42", timeout=0.01)

    async def test_pool_wait_counts_against_deadline(self, conn) -> None:
        pool = MagicMock()

        @asynccontextmanager
        async def exhausted():
            await asyncio.sleep(10)
            yield conn

        pool.acquire = exhausted
        store = PostgresStateStore(pool, command_timeout=0.01)

        with pytest.raises(StoreTimeoutError):
            await store.get("42")

        conn.fetchrow.assert_not_called()

    async def test_connection_errors_propagate(self, store, pool) -> None:
        @asynccontextmanager
        async def broken():
            raise StoreConnectionError("refused")
            yield  # pragma: no cover

        pool.acquire = broken

        with pytest.raises(StoreConnectionError):
            await store.save(
                ConversationState.start("42", "onboarding", "language", now=NOW, ttl=timedelta(hours=1))
            )


async def test_health_check_delegates_to_pool(store, pool) -> None:
    assert await store.health_check() is True
    pool.health_check.assert_awaited_once()

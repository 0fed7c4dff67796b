"""PostgreSQL implementation of StateStore.

Durable tier for conversation states. One row per user in
``conversation_states``, written with an upsert so a save is a single
atomic statement.
"""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import asyncpg
import pydantic

from swingbuddy.conversation.models import ConversationState, StateStats
from swingbuddy.conversation.store import StateStore
from swingbuddy.db.errors import StoreTimeoutError, ValidationError
from swingbuddy.db.pool import PostgresPool
from swingbuddy.observability.logging import get_logger

logger = get_logger(__name__)


class PostgresStateStore(StateStore):
    """PostgreSQL implementation of StateStore.

    Every call runs under a deadline (``command_timeout`` unless the caller
    passes ``timeout``) that covers waiting for a pooled connection as well
    as the statement itself.
    """

    def __init__(self, pool: PostgresPool, command_timeout: float = 5.0) -> None:
        """Initialize PostgreSQL state store.

        Args:
            pool: Shared connection pool
            command_timeout: Default deadline per call (seconds)
        """
        self._pool = pool
        self._command_timeout = command_timeout

    @asynccontextmanager
    async def _connection(
        self, operation: str, timeout: float | None
    ) -> AsyncIterator[asyncpg.Connection]:
        deadline = self._command_timeout if timeout is None else timeout
        try:
            async with asyncio.timeout(deadline):
                async with self._pool.acquire() as conn:
                    yield conn
        except TimeoutError as e:
            logger.error(
                "postgres_state_timeout",
                operation=operation,
                timeout=deadline,
            )
            raise StoreTimeoutError(
                f"State {operation} exceeded {deadline}s", cause=e
            ) from e

    def _row_to_state(self, row: Any) -> ConversationState:
        """Convert a database row to ConversationState."""
        data = row["data"]
        if isinstance(data, str):
            data = json.loads(data)
        try:
            return ConversationState(
                user_id=row["user_id"],
                scenario_name=row["scenario_name"],
                step_name=row["step_name"],
                data=data or {},
                expires_at=row["expires_at"],
                updated_at=row["updated_at"],
            )
        except pydantic.ValidationError as e:
            logger.error(
                "postgres_state_invalid_row",
                user_id=row["user_id"],
                error=str(e),
            )
            raise ValidationError(f"Invalid stored state: {e}", cause=e) from e

    async def get(
        self, user_id: str, *, timeout: float | None = None
    ) -> ConversationState | None:
        """Get the stored state for a user."""
        async with self._connection("get", timeout) as conn:
            row = await conn.fetchrow(
                """
                SELECT user_id, scenario_name, step_name, data, expires_at, updated_at
                FROM conversation_states
                WHERE user_id = $1
                """,
                user_id,
            )

        if row is None:
            logger.debug("postgres_state_not_found", user_id=user_id)
            return None

        return self._row_to_state(row)

    async def save(
        self, state: ConversationState, *, timeout: float | None = None
    ) -> None:
        """Upsert a user's state."""
        async with self._connection("save", timeout) as conn:
            await conn.execute(
                """
                INSERT INTO conversation_states (
                    user_id, scenario_name, step_name, data, expires_at, updated_at
                ) VALUES ($1, $2, $3, $4::jsonb, $5, $6)
                ON CONFLICT (user_id) DO UPDATE SET
                    scenario_name = EXCLUDED.scenario_name,
                    step_name = EXCLUDED.step_name,
                    data = EXCLUDED.data,
                    expires_at = EXCLUDED.expires_at,
                    updated_at = EXCLUDED.updated_at
                """,
                state.user_id,
                state.scenario_name,
                state.step_name,
                json.dumps(state.data),
                state.expires_at,
                state.updated_at,
            )

        logger.debug(
            "postgres_state_saved",
            user_id=state.user_id,
            scenario_name=state.scenario_name,
            step_name=state.step_name,
        )

    async def delete(self, user_id: str, *, timeout: float | None = None) -> bool:
        """Delete a user's state."""
        async with self._connection("delete", timeout) as conn:
            result = await conn.execute(
                "DELETE FROM conversation_states WHERE user_id = $1",
                user_id,
            )
        return _affected_rows(result) > 0

    async def delete_expired(
        self, before: datetime, *, timeout: float | None = None
    ) -> int:
        """Delete states that expired before the given instant."""
        async with self._connection("delete_expired", timeout) as conn:
            result = await conn.execute(
                """
                DELETE FROM conversation_states
                WHERE expires_at IS NOT NULL AND expires_at < $1
                """,
                before,
            )

        deleted = _affected_rows(result)
        logger.info("postgres_expired_states_deleted", count=deleted)
        return deleted

    async def stats(
        self, now: datetime, *, timeout: float | None = None
    ) -> StateStats:
        """Count stored states grouped by scenario."""
        async with self._connection("stats", timeout) as conn:
            rows = await conn.fetch(
                """
                SELECT
                    scenario_name,
                    COUNT(*) AS total,
                    COUNT(*) FILTER (
                        WHERE expires_at IS NOT NULL AND expires_at < $1
                    ) AS expired
                FROM conversation_states
                GROUP BY scenario_name
                """,
                now,
            )

        total = sum(row["total"] for row in rows)
        expired = sum(row["expired"] for row in rows)
        by_scenario = {
            row["scenario_name"]: row["total"] - row["expired"]
            for row in rows
            if row["scenario_name"] is not None and row["total"] > row["expired"]
        }
        return StateStats(
            total=total,
            active=total - expired,
            expired=expired,
            by_scenario=by_scenario,
        )

    async def health_check(self) -> bool:
        return await self._pool.health_check()


def _affected_rows(status: str) -> int:
    """Parse the row count out of an asyncpg status string like 'DELETE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0

"""Conversation state model."""

import json
from datetime import UTC, datetime, timedelta
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from swingbuddy.config.models.engine import StateLimits
from swingbuddy.db.errors import StateLimitExceededError

DataValue = bool | int | float | str


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class ConversationState(BaseModel):
    """Where a single user stands in a multi-step scenario.

    There is at most one state per user. A state with no scenario is
    idle; a state whose ``expires_at`` has passed is treated exactly like
    a missing one, whichever storage tier returned it.

    Instances are immutable. Transitions build a new state with
    ``advanced_to`` or ``touched`` instead of mutating in place.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1, description="Caller-owned user identifier")
    scenario_name: str | None = Field(default=None, description="Active scenario")
    step_name: str | None = Field(default=None, description="Current step in scenario")
    data: dict[str, DataValue] = Field(
        default_factory=dict, description="step key -> validated value"
    )
    expires_at: datetime | None = Field(
        default=None, description="State is discarded after this instant"
    )
    updated_at: datetime = Field(default_factory=utc_now, description="Last write")

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        if (self.scenario_name is None) != (self.step_name is None):
            raise ValueError("scenario_name and step_name must be set together")
        if self.scenario_name is not None and self.expires_at is None:
            raise ValueError("expires_at is required while a scenario is active")
        return self

    @classmethod
    def start(
        cls,
        user_id: str,
        scenario_name: str,
        step_name: str,
        *,
        now: datetime,
        ttl: timedelta,
    ) -> "ConversationState":
        """Fresh state at the first step of a scenario with empty data."""
        return cls(
            user_id=user_id,
            scenario_name=scenario_name,
            step_name=step_name,
            data={},
            expires_at=now + ttl,
            updated_at=now,
        )

    def advanced_to(
        self,
        step_name: str,
        data: dict[str, DataValue],
        *,
        now: datetime,
        ttl: timedelta,
    ) -> "ConversationState":
        """Same scenario at a new step, with refreshed expiry."""
        return self.model_copy(
            update={
                "step_name": step_name,
                "data": dict(data),
                "expires_at": now + ttl,
                "updated_at": now,
            }
        )

    def touched(self, *, now: datetime, ttl: timedelta) -> "ConversationState":
        """Same position and data, only the timestamps refreshed."""
        return self.model_copy(update={"expires_at": now + ttl, "updated_at": now})

    @property
    def is_active(self) -> bool:
        return self.scenario_name is not None

    def is_expired(self, now: datetime) -> bool:
        """A state is expired strictly after ``expires_at``."""
        return self.expires_at is not None and now > self.expires_at

    def cache_ttl_seconds(self, now: datetime, ceiling: int) -> int:
        """Redis TTL for this state: never past ``expires_at``, never above ceiling.

        Returns 0 or less when the state must not be cached at all.
        """
        if self.expires_at is None:
            return ceiling
        remaining = int((self.expires_at - now).total_seconds())
        return min(ceiling, remaining)

    def check_limits(self, limits: StateLimits, now: datetime) -> None:
        """Raise StateLimitExceededError if the state is too large or lives too long."""
        if len(self.data) > limits.max_data_entries:
            raise StateLimitExceededError(
                f"too many data entries: {len(self.data)} > {limits.max_data_entries}"
            )

        for key, value in self.data.items():
            size = len(json.dumps(value, ensure_ascii=False).encode())
            if size > limits.max_data_value_size:
                raise StateLimitExceededError(
                    f"value for '{key}' is too large: {size} > {limits.max_data_value_size} bytes"
                )

        total = len(self.model_dump_json().encode())
        if total > limits.max_total_size:
            raise StateLimitExceededError(
                f"state is too large: {total} > {limits.max_total_size} bytes"
            )

        if self.expires_at is not None and self.expires_at - now > limits.max_expiry:
            raise StateLimitExceededError(
                f"expiry too far in the future: {self.expires_at.isoformat()}"
            )


class StateStats(BaseModel):
    """Snapshot of the durable state table."""

    total: int = Field(default=0, ge=0, description="All stored rows")
    active: int = Field(default=0, ge=0, description="Rows not yet expired")
    expired: int = Field(default=0, ge=0, description="Rows past expires_at")
    by_scenario: dict[str, int] = Field(
        default_factory=dict, description="scenario name -> unexpired rows"
    )

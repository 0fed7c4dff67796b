"""Scenario engine configuration models."""

from datetime import timedelta

from pydantic import BaseModel, Field


class StateLimits(BaseModel):
    """Size and lifetime limits applied to every stored conversation state."""

    max_data_entries: int = Field(
        default=50,
        gt=0,
        description="Maximum number of keys in state data",
    )
    max_data_value_size: int = Field(
        default=10 * 1024,
        gt=0,
        description="Maximum serialized size of a single data value (bytes)",
    )
    max_total_size: int = Field(
        default=100 * 1024,
        gt=0,
        description="Maximum serialized size of the whole state (bytes)",
    )
    max_expiry: timedelta = Field(
        default=timedelta(days=7),
        description="Maximum distance between now and expires_at",
    )


class EngineConfig(BaseModel):
    """Scenario manager behaviour."""

    cancel_triggers: list[str] = Field(
        default_factory=lambda: ["/cancel"],
        description="Inputs that cancel the active scenario at any step",
    )
    skip_triggers: list[str] = Field(
        default_factory=lambda: ["/skip"],
        description="Inputs that skip a skippable step",
    )
    lock_blocking_timeout: float = Field(
        default=5.0,
        gt=0,
        description="How long an input waits for the same user's previous input (seconds)",
    )
    ttl_overrides: dict[str, int] = Field(
        default_factory=dict,
        description="scenario name -> time-to-live in seconds",
    )
    limits: StateLimits = Field(
        default_factory=StateLimits,
        description="Stored state limits",
    )


class SweeperConfig(BaseModel):
    """Background removal of long-expired durable rows."""

    enabled: bool = Field(default=True, description="Run the sweeper in bootstrap")
    interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Delay between sweeps (seconds)",
    )
    grace_seconds: int = Field(
        default=3600,
        ge=0,
        description="Only rows expired for longer than this are removed (seconds)",
    )

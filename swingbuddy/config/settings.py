"""Root settings model for SwingBuddy configuration."""

from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from swingbuddy.config.models.engine import EngineConfig, SweeperConfig
from swingbuddy.config.models.observability import ObservabilityConfig
from swingbuddy.config.models.storage import StorageConfig

# TOML values handed to the custom settings source
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Set the TOML configuration to be used by Settings."""
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by the merged TOML files."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        value = _toml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return _toml_config.copy()


class Settings(BaseSettings):
    """Root configuration object.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{SWINGBUDDY_ENV}.toml (environment overrides)
    4. SWINGBUDDY_* environment variables (runtime overrides)
    """

    model_config = SettingsConfigDict(
        env_prefix="SWINGBUDDY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="swingbuddy", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="State storage tiers",
    )
    engine: EngineConfig = Field(
        default_factory=EngineConfig,
        description="Scenario manager behaviour",
    )
    sweeper: SweeperConfig = Field(
        default_factory=SweeperConfig,
        description="Expired state sweeper",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging and metrics",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Constructor arguments, then environment, then TOML."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )

"""Shared test fixtures for the SwingBuddy test suite."""

import os
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import structlog

from swingbuddy.config import get_settings
from swingbuddy.config.settings import set_toml_config


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], Path]:
    """Factory fixture writing TOML files into the test config directory.

    Usage:
        def test_something(mock_toml_files):
            config_dir = mock_toml_files({
                "default.toml": "app_name = 'test'",
                "staging.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> Path:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)
        return test_config_dir

    return _create_toml_files


class EnvOverrideContext:
    """Temporarily set environment variables, restoring them on exit."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            original = self.original_env[key]
            if original is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = original


@pytest.fixture
def env_override() -> Callable[[dict[str, str]], EnvOverrideContext]:
    """Context manager factory for environment overrides.

    Usage:
        def test_something(env_override):
            with env_override({"SWINGBUDDY_DEBUG": "true"}):
                ...
    """
    return EnvOverrideContext


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Reset cached settings and TOML values around every test."""
    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Drop global structlog config so no test inherits a stream captured by another."""
    yield
    structlog.reset_defaults()


class FakeClock:
    """Settable UTC clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 6, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

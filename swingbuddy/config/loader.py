"""Layered TOML configuration: ``default.toml``, then ``<environment>.toml``."""

import os
import tomllib
from pathlib import Path
from typing import Any


def load_config(
    config_dir: Path | None = None, environment: str | None = None
) -> dict[str, Any]:
    """Read ``default.toml`` and overlay the environment's file if present.

    Args:
        config_dir: Directory holding the TOML files; SWINGBUDDY_CONFIG_DIR,
            else ``./config``
        environment: Overlay name; SWINGBUDDY_ENV, else "development"

    Raises:
        FileNotFoundError: If ``default.toml`` is missing
        tomllib.TOMLDecodeError: If a file is not valid TOML
    """
    if config_dir is None:
        config_dir = Path(os.environ.get("SWINGBUDDY_CONFIG_DIR") or Path.cwd() / "config")
    environment = environment or os.environ.get("SWINGBUDDY_ENV", "development")

    default_path = config_dir / "default.toml"
    if not default_path.is_file():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            "Run from the repository root or set SWINGBUDDY_CONFIG_DIR."
        )

    config = _read(default_path)
    overlay_path = config_dir / f"{environment}.toml"
    if overlay_path.is_file():
        _overlay(config, _read(overlay_path))
    return config


def _read(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def _overlay(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Merge ``override`` into ``base`` in place, table by table."""
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _overlay(base[key], value)
        else:
            base[key] = value

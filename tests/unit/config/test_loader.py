"""Unit tests for TOML configuration loader."""

import tomllib
from pathlib import Path

import pytest

from swingbuddy.config.loader import load_config


class TestLoadConfig:
    def test_default_only(self, mock_toml_files) -> None:
        config_dir = mock_toml_files({"default.toml": "app_name = 'bot'\ndebug = false"})

        assert load_config(config_dir, "staging") == {"app_name": "bot", "debug": False}

    def test_overlay_merges_table_by_table(self, mock_toml_files) -> None:
        config_dir = mock_toml_files({
            "default.toml": "[storage.cache]\nenabled = true\nkey_prefix = 'sb'",
            "staging.toml": "[storage.cache]\nenabled = false",
        })

        assert load_config(config_dir, "staging") == {
            "storage": {"cache": {"enabled": False, "key_prefix": "sb"}}
        }

    def test_overlay_replaces_lists_and_scalars(self, mock_toml_files) -> None:
        config_dir = mock_toml_files({
            "default.toml": "[engine]\ncancel_triggers = ['/cancel']\n[sweeper]\nenabled = true",
            "production.toml": "engine = 'off'\n[sweeper]\nenabled = false",
        })

        # a scalar overlay replaces a whole table
        assert load_config(config_dir, "production") == {
            "engine": "off",
            "sweeper": {"enabled": False},
        }

    def test_missing_default_raises(self, test_config_dir: Path) -> None:
        with pytest.raises(FileNotFoundError, match="default.toml"):
            load_config(test_config_dir, "development")

    def test_invalid_syntax_raises(self, mock_toml_files) -> None:
        config_dir = mock_toml_files({
            "default.toml": "debug = false",
            "staging.toml": "cancel_triggers = [",
        })

        with pytest.raises(tomllib.TOMLDecodeError):
            load_config(config_dir, "staging")


class TestEnvironmentSelection:
    def test_directory_and_environment_from_env_vars(
        self, mock_toml_files, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_dir = mock_toml_files({
            "default.toml": "debug = false",
            "production.toml": "debug = true",
        })
        monkeypatch.setenv("SWINGBUDDY_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("SWINGBUDDY_ENV", "production")

        assert load_config() == {"debug": True}

    def test_defaults_to_cwd_config_and_development(
        self, mock_toml_files, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_dir = mock_toml_files({
            "default.toml": "debug = false",
            "development.toml": "debug = true",
        })
        monkeypatch.delenv("SWINGBUDDY_CONFIG_DIR", raising=False)
        monkeypatch.delenv("SWINGBUDDY_ENV", raising=False)
        monkeypatch.chdir(config_dir.parent)

        assert load_config() == {"debug": True}

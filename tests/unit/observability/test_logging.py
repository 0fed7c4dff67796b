"""Tests for structured logging."""

import json

import pytest
import structlog

from swingbuddy.observability.logging import (
    PIIRedactor,
    get_logger,
    setup_logging,
)


def _last_json_line(err: str) -> dict:
    lines = [line for line in err.strip().splitlines() if line.strip()]
    return json.loads(lines[-1])


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="INFO", format="json", redact_pii=False)

        get_logger("test").info("state_cache_hit", user_id="42")

        event = _last_json_line(capsys.readouterr().err)
        assert event["event"] == "state_cache_hit"
        assert event["user_id"] == "42"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="WARNING", format="json", redact_pii=False)

        get_logger("test").info("quiet_event")

        assert "quiet_event" not in capsys.readouterr().err

    def test_console_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="DEBUG", format="console", redact_pii=False)

        get_logger("test").debug("scenario_step_advanced", to_step="name")

        assert "scenario_step_advanced" in capsys.readouterr().err

    def test_bound_contextvars_are_merged(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="INFO", format="json", redact_pii=True)

        with structlog.contextvars.bound_contextvars(user_id="1001"):
            get_logger("test").info("scenario_started")

        event = _last_json_line(capsys.readouterr().err)
        # numeric user ids and timestamps survive redaction
        assert event["user_id"] == "1001"
        assert "[PHONE]" not in event["timestamp"]

    def test_redaction_applied_when_enabled(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        setup_logging(level="INFO", format="json", redact_pii=True)

        get_logger("test").info("profile_saved", email="anna@example.com")

        event = _last_json_line(capsys.readouterr().err)
        assert event["email"] == "[REDACTED]"


class TestPIIRedactor:
    """Tests for PII redaction."""

    @pytest.fixture
    def redactor(self) -> PIIRedactor:
        return PIIRedactor()

    @pytest.mark.parametrize("key", ["password", "bot_token", "api_key", "raw_input", "DSN"])
    def test_sensitive_keys_redacted(self, redactor: PIIRedactor, key: str) -> None:
        result = redactor(None, "info", {key: "value", "other": "kept"})  # type: ignore[arg-type]

        assert result[key] == "[REDACTED]"
        assert result["other"] == "kept"

    def test_email_in_free_text(self, redactor: PIIRedactor) -> None:
        result = redactor(None, "info", {"reason": "write to anna@example.com"})  # type: ignore[arg-type]
        assert result["reason"] == "write to [EMAIL]"

    def test_phone_in_free_text(self, redactor: PIIRedactor) -> None:
        result = redactor(None, "info", {"reason": "call +7 912 345-67-89 now"})  # type: ignore[arg-type]
        assert result["reason"] == "call [PHONE] now"

    def test_dsn_password_masked(self, redactor: PIIRedactor) -> None:
        result = redactor(  # type: ignore[arg-type]
            None, "info", {"error": "cannot reach postgresql://bot:hunter2@db:5432/sb"}
        )
        assert result["error"] == "cannot reach postgresql://bot:***@db:5432/sb"

    def test_nested_structures(self, redactor: PIIRedactor) -> None:
        event = {"data": {"name": "Anna", "phone": "+79123456789"}, "tags": ["a@b.io"]}

        result = redactor(None, "info", event)  # type: ignore[arg-type]

        assert result["data"] == {"name": "Anna", "phone": "[REDACTED]"}
        assert result["tags"] == ["[EMAIL]"]

    def test_non_string_values_untouched(self, redactor: PIIRedactor) -> None:
        result = redactor(None, "info", {"count": 3, "ok": True})  # type: ignore[arg-type]
        assert result == {"count": 3, "ok": True}

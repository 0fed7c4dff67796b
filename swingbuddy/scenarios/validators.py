"""Reusable step validators.

Each factory returns a pure function ``str -> DataValue`` that raises
StepValidationError with a user-facing reason. Input arrives already
stripped of surrounding whitespace. Lengths are counted in characters.
"""

import math
import re
from collections.abc import Mapping
from datetime import datetime

from swingbuddy.conversation.models import DataValue
from swingbuddy.scenarios.errors import StepValidationError
from swingbuddy.scenarios.models import Validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]{7,20}$")

_TRUE_WORDS = frozenset({"yes", "y", "true", "1", "да"})
_FALSE_WORDS = frozenset({"no", "n", "false", "0", "нет"})


def choice(*options: str, case_sensitive: bool = False) -> Validator:
    """Accept one of ``options`` and return it in its declared spelling."""
    if not options:
        raise ValueError("choice() needs at least one option")
    lookup = {(o if case_sensitive else o.lower()): o for o in options}
    listing = ", ".join(options)

    def validate(raw: str) -> DataValue:
        candidate = raw if case_sensitive else raw.lower()
        if candidate not in lookup:
            raise StepValidationError(f"Invalid choice. Available options: {listing}")
        return lookup[candidate]

    return validate


def mapped_choice(mapping: Mapping[str, DataValue]) -> Validator:
    """Accept one of the mapping's keys (case-insensitive) and return its value."""
    lookup = {key.lower(): value for key, value in mapping.items()}
    listing = ", ".join(mapping)

    def validate(raw: str) -> DataValue:
        try:
            return lookup[raw.lower()]
        except KeyError:
            raise StepValidationError(
                f"Invalid choice. Available options: {listing}"
            ) from None

    return validate


def text(min_length: int = 1, max_length: int | None = None) -> Validator:
    """Accept text whose length is within bounds."""

    def validate(raw: str) -> DataValue:
        if len(raw) < min_length:
            raise StepValidationError(
                f"Input too short (minimum {min_length} characters)"
            )
        if max_length is not None and len(raw) > max_length:
            raise StepValidationError(
                f"Input too long (maximum {max_length} characters)"
            )
        return raw

    return validate


def pattern(regex: str, reason: str = "Input format is invalid") -> Validator:
    """Accept text fully matching ``regex``."""
    compiled = re.compile(regex)

    def validate(raw: str) -> DataValue:
        if not compiled.fullmatch(raw):
            raise StepValidationError(reason)
        return raw

    return validate


def number(min_value: float | None = None, max_value: float | None = None) -> Validator:
    """Accept a decimal number and return it as a float."""

    def validate(raw: str) -> DataValue:
        try:
            value = float(raw.replace(",", "."))
        except ValueError:
            raise StepValidationError("Invalid number format") from None
        if not math.isfinite(value):
            raise StepValidationError("Invalid number format")
        _check_range(value, min_value, max_value)
        return value

    return validate


def integer(min_value: int | None = None, max_value: int | None = None) -> Validator:
    """Accept a whole number."""

    def validate(raw: str) -> DataValue:
        try:
            value = int(raw)
        except ValueError:
            raise StepValidationError("Invalid number format") from None
        _check_range(value, min_value, max_value)
        return value

    return validate


def _check_range(
    value: float, min_value: float | None, max_value: float | None
) -> None:
    if min_value is not None and value < min_value:
        raise StepValidationError(f"Value must be at least {min_value}")
    if max_value is not None and value > max_value:
        raise StepValidationError(f"Value must be at most {max_value}")


def date(fmt: str = "%Y-%m-%d") -> Validator:
    """Accept a calendar date and return it in ISO format (YYYY-MM-DD)."""

    def validate(raw: str) -> DataValue:
        try:
            return datetime.strptime(raw, fmt).date().isoformat()
        except ValueError:
            raise StepValidationError("Invalid date format (YYYY-MM-DD)") from None

    return validate


def time(fmt: str = "%H:%M") -> Validator:
    """Accept a time of day and return it as HH:MM."""

    def validate(raw: str) -> DataValue:
        try:
            return datetime.strptime(raw, fmt).strftime("%H:%M")
        except ValueError:
            raise StepValidationError("Invalid time format (HH:MM)") from None

    return validate


def email() -> Validator:
    def validate(raw: str) -> DataValue:
        if not EMAIL_PATTERN.match(raw):
            raise StepValidationError("Invalid email format")
        return raw.lower()

    return validate


def phone() -> Validator:
    """Accept a phone number; the result keeps only digits and a leading '+'."""

    def validate(raw: str) -> DataValue:
        if not PHONE_PATTERN.match(raw):
            raise StepValidationError("Invalid phone number format")
        digits = re.sub(r"\D", "", raw)
        return f"+{digits}" if raw.startswith("+") else digits

    return validate


def boolean() -> Validator:
    def validate(raw: str) -> DataValue:
        word = raw.lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise StepValidationError("Please answer yes or no")

    return validate


def free_text(max_length: int | None = None) -> Validator:
    """Accept any non-empty text."""
    return text(min_length=1, max_length=max_length)

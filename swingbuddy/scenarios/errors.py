"""Scenario engine exceptions."""


class ScenarioError(Exception):
    """Base exception for scenario engine errors."""

    retryable: bool = False


class StepValidationError(ScenarioError):
    """Raised by a step validator when the input is not acceptable.

    ``reason`` is meant for the user and is returned as ``Invalid(reason)``.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TerminalActionError(ScenarioError):
    """Raised by a terminal action to report a user-facing failure reason."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ScenarioDefinitionError(ScenarioError):
    """Raised when a scenario definition or registry is inconsistent.

    Startup checks raise it for duplicate names, keys or triggers and for
    branches to missing steps. At runtime it signals a transition that
    returned a step it never declared.
    """


class UserBusyError(ScenarioError):
    """Raised when a user's previous input is still being processed."""

    retryable = True

    def __init__(self, user_id: str, timeout: float) -> None:
        super().__init__(f"User {user_id} is busy (waited {timeout}s)")
        self.user_id = user_id
        self.timeout = timeout

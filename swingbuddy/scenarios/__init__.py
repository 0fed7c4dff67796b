"""Scenario engine.

Scenario definitions, their registry, and the manager that moves users
through them one input at a time.
"""

from swingbuddy.scenarios.errors import (
    ScenarioDefinitionError,
    ScenarioError,
    StepValidationError,
    TerminalActionError,
    UserBusyError,
)
from swingbuddy.scenarios.manager import ScenarioManager
from swingbuddy.scenarios.models import (
    END,
    ScenarioDefinition,
    ScenarioName,
    StepDefinition,
)
from swingbuddy.scenarios.outcomes import (
    Advanced,
    Cancelled,
    Completed,
    Failed,
    Invalid,
    NoActiveScenario,
    Outcome,
    Started,
)
from swingbuddy.scenarios.registry import ScenarioRegistry, build_default_registry

__all__ = [
    # Definitions
    "END",
    "ScenarioDefinition",
    "ScenarioName",
    "StepDefinition",
    "ScenarioRegistry",
    "build_default_registry",
    # Manager
    "ScenarioManager",
    # Outcomes
    "Advanced",
    "Cancelled",
    "Completed",
    "Failed",
    "Invalid",
    "NoActiveScenario",
    "Outcome",
    "Started",
    # Errors
    "ScenarioDefinitionError",
    "ScenarioError",
    "StepValidationError",
    "TerminalActionError",
    "UserBusyError",
]

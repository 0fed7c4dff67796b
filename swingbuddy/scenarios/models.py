"""Scenario and step definitions.

A scenario is pure configuration: an ordered tuple of steps, each with a
validator and an optional transition. Only the terminal action performs
side effects, and the manager is the only caller of it.
"""

from collections.abc import Awaitable, Callable, Mapping
from datetime import timedelta
from enum import Enum
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from swingbuddy.conversation.models import DataValue
from swingbuddy.scenarios.errors import ScenarioDefinitionError


class ScenarioName(str, Enum):
    """Closed set of scenarios the bot knows about."""

    ONBOARDING = "onboarding"
    GROUP_SETUP = "group_setup"
    EVENT_CREATION = "event_creation"
    ADMIN_PANEL = "admin_panel"


class End(Enum):
    """Marker returned by a transition when the scenario is finished."""

    END = "END"

    def __repr__(self) -> str:
        return "END"


END = End.END

Validator = Callable[[str], DataValue]
Transition = Callable[[DataValue, Mapping[str, DataValue]], str | Literal[End.END]]
TerminalAction = Callable[[str, dict[str, DataValue]], Awaitable[None]]


class StepDefinition(BaseModel):
    """One input-taking step of a scenario."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique within the scenario")
    key: str = Field(default="", description="Data key the value is stored under")
    prompt: str = Field(default="", description="Message shown when entering the step")
    validator: Validator = Field(..., description="raw input -> value, or StepValidationError")
    transition: Transition | None = Field(
        default=None, description="value, data -> next step name or END; None is sequential"
    )
    branches: tuple[str, ...] = Field(
        default=(), description="Every step name the transition may return"
    )
    skippable: bool = Field(default=False, description="Skip trigger moves past this step")

    @model_validator(mode="before")
    @classmethod
    def _default_key(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("key"):
            values = {**values, "key": values.get("name", "")}
        return values


class ScenarioDefinition(BaseModel):
    """A named, ordered sequence of steps.

    Structural problems (duplicate step names or keys, branches to
    missing steps, no steps or triggers) raise ScenarioDefinitionError at
    construction time so a broken scenario never reaches a user.
    """

    model_config = ConfigDict(frozen=True)

    name: ScenarioName
    title: str = Field(default="", description="Human readable name")
    description: str = Field(default="", description="What the scenario is for")
    entry_triggers: tuple[str, ...] = Field(..., description="Inputs that start the scenario")
    steps: tuple[StepDefinition, ...] = Field(..., description="Order defines the default next step")
    ttl: timedelta = Field(..., description="Applied on start and on every advance")
    extend_ttl_on_activity: bool = Field(
        default=False, description="Refresh expiry on a validation failure too"
    )
    interruptible: bool = Field(
        default=False, description="Another scenario's entry trigger replaces this one"
    )
    terminal_action: TerminalAction | None = Field(
        default=None, description="Async side effect run with the collected data"
    )

    @model_validator(mode="after")
    def _check_structure(self) -> Self:
        if not self.steps:
            raise ScenarioDefinitionError(f"Scenario {self.name.value} has no steps")
        if not self.entry_triggers:
            raise ScenarioDefinitionError(f"Scenario {self.name.value} has no entry triggers")
        if self.ttl <= timedelta(0):
            raise ScenarioDefinitionError(f"Scenario {self.name.value} has a non-positive ttl")

        names = [step.name for step in self.steps]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ScenarioDefinitionError(
                f"Scenario {self.name.value} has duplicate steps: {sorted(duplicates)}"
            )

        keys = [step.key for step in self.steps]
        duplicates = {key for key in keys if keys.count(key) > 1}
        if duplicates:
            raise ScenarioDefinitionError(
                f"Scenario {self.name.value} has duplicate data keys: {sorted(duplicates)}"
            )

        for step in self.steps:
            missing = [branch for branch in step.branches if branch not in names]
            if missing:
                raise ScenarioDefinitionError(
                    f"Step {self.name.value}.{step.name} branches to unknown steps: {missing}"
                )
        return self

    @property
    def first_step(self) -> StepDefinition:
        return self.steps[0]

    def step(self, name: str) -> StepDefinition | None:
        """Look up a step by name."""
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def sequential_next(self, step_name: str) -> str | Literal[End.END]:
        """The step after ``step_name`` in declaration order, or END for the last one."""
        for index, step in enumerate(self.steps):
            if step.name == step_name:
                if index + 1 < len(self.steps):
                    return self.steps[index + 1].name
                return END
        raise ScenarioDefinitionError(f"Scenario {self.name.value} has no step {step_name}")

    def resolve_next(
        self,
        step: StepDefinition,
        value: DataValue,
        data: Mapping[str, DataValue],
    ) -> str | Literal[End.END]:
        """Where a validated value leads.

        Raises:
            ScenarioDefinitionError: If the transition returns a step it did
                not declare in ``branches``
        """
        if step.transition is None:
            return self.sequential_next(step.name)

        target = step.transition(value, data)
        if target is END:
            return END
        if target not in step.branches or self.step(target) is None:
            raise ScenarioDefinitionError(
                f"Step {self.name.value}.{step.name} transitioned to undeclared step {target!r}"
            )
        return target

    def with_terminal_action(self, action: TerminalAction | None) -> "ScenarioDefinition":
        return self.model_copy(update={"terminal_action": action})

    def with_ttl(self, ttl: timedelta) -> "ScenarioDefinition":
        if ttl <= timedelta(0):
            raise ScenarioDefinitionError(f"Scenario {self.name.value} ttl must be positive")
        return self.model_copy(update={"ttl": ttl})

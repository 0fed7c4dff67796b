"""Immutable registry of scenario definitions."""

from collections.abc import Iterable, Iterator, Mapping
from datetime import timedelta
from types import MappingProxyType

from swingbuddy.conversation.models import ConversationState
from swingbuddy.observability.logging import get_logger
from swingbuddy.scenarios.builtin import builtin_scenarios
from swingbuddy.scenarios.errors import ScenarioDefinitionError
from swingbuddy.scenarios.models import (
    ScenarioDefinition,
    ScenarioName,
    StepDefinition,
    TerminalAction,
)

logger = get_logger(__name__)


def normalize_command(raw_input: str) -> str:
    """Canonical form of a possible command.

    Strips whitespace and, for slash commands, lowercases and drops a
    ``@botname`` suffix so ``/Start@SwingBuddyBot`` matches ``/start``.
    Ordinary text is only stripped.
    """
    text = raw_input.strip()
    if not text.startswith("/"):
        return text
    command = text.split(maxsplit=1)[0]
    return command.split("@", 1)[0].lower()


class ScenarioRegistry:
    """Read-only lookup of scenarios by name and by entry trigger.

    Built once at startup and shared between tasks without locking.
    """

    def __init__(self, scenarios: Iterable[ScenarioDefinition]) -> None:
        by_name: dict[str, ScenarioDefinition] = {}
        by_trigger: dict[str, ScenarioDefinition] = {}

        for scenario in scenarios:
            if scenario.name in by_name:
                raise ScenarioDefinitionError(f"Duplicate scenario name: {scenario.name.value}")
            by_name[scenario.name] = scenario

            for trigger in scenario.entry_triggers:
                normalized = normalize_command(trigger)
                if normalized in by_trigger:
                    raise ScenarioDefinitionError(
                        f"Entry trigger {trigger!r} used by both "
                        f"{by_trigger[normalized].name.value} and {scenario.name.value}"
                    )
                by_trigger[normalized] = scenario

        self._by_name: Mapping[str, ScenarioDefinition] = MappingProxyType(by_name)
        self._by_trigger: Mapping[str, ScenarioDefinition] = MappingProxyType(by_trigger)

        logger.info("scenario_registry_built", scenarios=sorted(by_name))

    def get(self, name: str) -> ScenarioDefinition | None:
        """Get a scenario by name; unknown names return None."""
        return self._by_name.get(name)

    def match_trigger(self, raw_input: str) -> ScenarioDefinition | None:
        """Scenario whose entry trigger is ``raw_input``, if any."""
        return self._by_trigger.get(normalize_command(raw_input))

    def resolve(
        self, state: ConversationState
    ) -> tuple[ScenarioDefinition, StepDefinition] | None:
        """Scenario and step a state points at, or None if either is unknown."""
        if state.scenario_name is None or state.step_name is None:
            return None
        scenario = self._by_name.get(state.scenario_name)
        if scenario is None:
            return None
        step = scenario.step(state.step_name)
        if step is None:
            return None
        return scenario, step

    @property
    def names(self) -> list[str]:
        return list(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[ScenarioDefinition]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


def build_default_registry(
    terminal_actions: Mapping[ScenarioName, TerminalAction] | None = None,
    ttl_overrides: Mapping[str, int] | None = None,
) -> ScenarioRegistry:
    """Registry of the built-in scenarios.

    Args:
        terminal_actions: Side effect per scenario, run on completion
        ttl_overrides: scenario name -> ttl in seconds, replacing the default

    Raises:
        ScenarioDefinitionError: If an override names an unknown scenario or
            the definitions are inconsistent
    """
    overrides = dict(ttl_overrides or {})
    scenarios = []
    for scenario in builtin_scenarios(terminal_actions):
        seconds = overrides.pop(scenario.name, None)
        if seconds is not None:
            scenario = scenario.with_ttl(timedelta(seconds=seconds))
        scenarios.append(scenario)

    if overrides:
        raise ScenarioDefinitionError(
            f"TTL overrides for unknown scenarios: {sorted(overrides)}"
        )

    return ScenarioRegistry(scenarios)

"""Built-in scenarios of the SwingBuddy bot."""

from collections.abc import Mapping
from datetime import timedelta
from typing import Literal

from swingbuddy.conversation.models import DataValue
from swingbuddy.scenarios import validators
from swingbuddy.scenarios.models import (
    END,
    End,
    ScenarioDefinition,
    ScenarioName,
    StepDefinition,
    TerminalAction,
)

ADMIN_SECTIONS = ("users", "groups", "events", "settings", "stats")
ADMIN_EXIT = "exit"


def create_onboarding_scenario(
    terminal_action: TerminalAction | None = None,
) -> ScenarioDefinition:
    """Language, name and (optional) location of a new user."""
    return ScenarioDefinition(
        name=ScenarioName.ONBOARDING,
        title="User Onboarding",
        description="Register a new user: language, name and location",
        entry_triggers=("/start",),
        steps=(
            StepDefinition(
                name="language",
                prompt="Choose your language: en / ru",
                validator=validators.choice("en", "ru"),
            ),
            StepDefinition(
                name="name",
                prompt="What is your name?",
                validator=validators.text(min_length=2, max_length=50),
            ),
            StepDefinition(
                name="location",
                prompt="Where are you located? (/skip to skip)",
                validator=validators.text(min_length=2, max_length=100),
                skippable=True,
            ),
        ),
        ttl=timedelta(hours=1),
        terminal_action=terminal_action,
    )


def create_group_setup_scenario(
    terminal_action: TerminalAction | None = None,
) -> ScenarioDefinition:
    return ScenarioDefinition(
        name=ScenarioName.GROUP_SETUP,
        title="Group Setup",
        description="Bot setup in a new group",
        entry_triggers=("/setup",),
        steps=(
            StepDefinition(
                name="configuration",
                prompt="Send group settings (/skip for defaults)",
                validator=validators.free_text(max_length=1000),
                skippable=True,
            ),
        ),
        ttl=timedelta(minutes=30),
        interruptible=True,
        terminal_action=terminal_action,
    )


def _only_when_confirmed(create_event: TerminalAction) -> TerminalAction:
    """Run ``create_event`` only if the user confirmed at the last step."""

    async def action(user_id: str, data: dict[str, DataValue]) -> None:
        if data.get("confirmed") is True:
            await create_event(user_id, data)

    return action


def create_event_creation_scenario(
    create_event: TerminalAction | None = None,
) -> ScenarioDefinition:
    """Collect event details, then create the event if the user confirms.

    Answering ``cancel`` at the confirmation step still completes the
    scenario, with ``confirmed`` set to False and no event created.
    """
    return ScenarioDefinition(
        name=ScenarioName.EVENT_CREATION,
        title="Event Creation",
        description="Create a new dance event",
        entry_triggers=("/create_event",),
        steps=(
            StepDefinition(
                name="title",
                prompt="Event title?",
                validator=validators.text(min_length=3, max_length=100),
            ),
            StepDefinition(
                name="description",
                prompt="Describe the event (/skip to skip)",
                validator=validators.text(min_length=10, max_length=500),
                skippable=True,
            ),
            StepDefinition(
                name="date",
                prompt="Date (YYYY-MM-DD)?",
                validator=validators.date(),
            ),
            StepDefinition(
                name="time",
                prompt="Start time (HH:MM)?",
                validator=validators.time(),
            ),
            StepDefinition(
                name="location",
                prompt="Where?",
                validator=validators.text(min_length=3, max_length=200),
            ),
            StepDefinition(
                name="confirmation",
                key="confirmed",
                prompt="Create this event? confirm / cancel",
                validator=validators.mapped_choice({"confirm": True, "cancel": False}),
            ),
        ),
        ttl=timedelta(minutes=30),
        interruptible=True,
        terminal_action=_only_when_confirmed(create_event) if create_event else None,
    )


def _admin_menu_transition(
    value: DataValue, data: Mapping[str, DataValue]  # noqa: ARG001
) -> str | Literal[End.END]:
    if value == ADMIN_EXIT:
        return END
    return str(value)


def _back_to_menu(value: DataValue, data: Mapping[str, DataValue]) -> str:  # noqa: ARG001
    return "main_menu"


def create_admin_panel_scenario(
    terminal_action: TerminalAction | None = None,
) -> ScenarioDefinition:
    """Admin menu loop: pick a section, send one command, return to the menu."""
    section_steps = tuple(
        StepDefinition(
            name=section,
            key=f"{section}_command",
            prompt=f"{section.capitalize()} command?",
            validator=validators.free_text(max_length=500),
            transition=_back_to_menu,
            branches=("main_menu",),
        )
        for section in ADMIN_SECTIONS
    )
    return ScenarioDefinition(
        name=ScenarioName.ADMIN_PANEL,
        title="Admin Panel",
        description="Administrative functions",
        entry_triggers=("/admin",),
        steps=(
            StepDefinition(
                name="main_menu",
                key="section",
                prompt="Choose a section: " + ", ".join((*ADMIN_SECTIONS, ADMIN_EXIT)),
                validator=validators.choice(*ADMIN_SECTIONS, ADMIN_EXIT),
                transition=_admin_menu_transition,
                branches=ADMIN_SECTIONS,
            ),
            *section_steps,
        ),
        ttl=timedelta(hours=1),
        interruptible=True,
        terminal_action=terminal_action,
    )


def builtin_scenarios(
    terminal_actions: Mapping[ScenarioName, TerminalAction] | None = None,
) -> list[ScenarioDefinition]:
    """All built-in scenarios wired to the given terminal actions."""
    actions = terminal_actions or {}
    return [
        create_onboarding_scenario(actions.get(ScenarioName.ONBOARDING)),
        create_group_setup_scenario(actions.get(ScenarioName.GROUP_SETUP)),
        create_event_creation_scenario(actions.get(ScenarioName.EVENT_CREATION)),
        create_admin_panel_scenario(actions.get(ScenarioName.ADMIN_PANEL)),
    ]

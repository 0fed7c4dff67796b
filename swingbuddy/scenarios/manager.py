"""Scenario manager.

Turns one raw user input into one Outcome. Every call for a user runs
inside that user's critical section, so reads and writes of the user's
state never interleave with another input from the same user.
"""

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal

import structlog

from swingbuddy.config.models.engine import EngineConfig
from swingbuddy.conversation.models import ConversationState, DataValue, utc_now
from swingbuddy.conversation.stores.cached import StateStoreCacheLayer
from swingbuddy.db.errors import StateLimitExceededError, ValidationError
from swingbuddy.observability.logging import get_logger
from swingbuddy.observability.metrics import (
    ADVANCE_LATENCY,
    CORRUPT_STATES,
    SCENARIO_OUTCOMES,
    TERMINAL_ACTION_FAILURES,
)
from swingbuddy.runtime.mutex import UserMutex
from swingbuddy.scenarios.errors import (
    ScenarioDefinitionError,
    StepValidationError,
    TerminalActionError,
    UserBusyError,
)
from swingbuddy.scenarios.models import END, End, ScenarioDefinition
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
from swingbuddy.scenarios.registry import ScenarioRegistry, normalize_command

logger = get_logger(__name__)

GENERIC_FAILURE_REASON = "Something went wrong, please try again"


class ScenarioManager:
    """Drives users through scenarios.

    All state access goes through the StateStoreCacheLayer. Storage errors
    (``StoreConnectionError``, ``StoreTimeoutError``) and ``UserBusyError``
    propagate to the caller; everything a user can cause comes back as an
    Outcome.
    """

    def __init__(
        self,
        registry: ScenarioRegistry,
        store: StateStoreCacheLayer,
        *,
        mutex: UserMutex | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize scenario manager.

        Args:
            registry: Scenario definitions
            store: State facade over the durable store and cache
            mutex: Per-user lock table (a private one if not given)
            config: Engine configuration (uses defaults if not provided)
            clock: Source of the current UTC time
        """
        self._registry = registry
        self._store = store
        self._config = config or EngineConfig()
        self._mutex = mutex or UserMutex(self._config.lock_blocking_timeout)
        self._clock = clock
        self._cancel_triggers = frozenset(
            normalize_command(t) for t in self._config.cancel_triggers
        )
        self._skip_triggers = frozenset(
            normalize_command(t) for t in self._config.skip_triggers
        )

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        timeout = self._config.lock_blocking_timeout
        async with self._mutex.acquire(user_id, blocking_timeout=timeout) as acquired:
            if not acquired:
                logger.warning("user_lock_timeout", timeout=timeout)
                raise UserBusyError(user_id, timeout)
            yield

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def advance(
        self, user_id: str, raw_input: str, *, timeout: float | None = None
    ) -> Outcome:
        """Process one input from a user.

        Args:
            user_id: Caller-owned user identifier
            raw_input: Text exactly as the user sent it
            timeout: Deadline per durable store call (seconds); store default if None

        Raises:
            UserBusyError: If the user's previous input is still running
            StoreConnectionError: If the durable store is unreachable
            StoreTimeoutError: If a durable call exceeded its deadline
        """
        started = time.perf_counter()
        try:
            with structlog.contextvars.bound_contextvars(user_id=user_id):
                async with self._user_lock(user_id):
                    outcome = await self._advance(user_id, raw_input.strip(), timeout)
        finally:
            ADVANCE_LATENCY.observe(time.perf_counter() - started)

        SCENARIO_OUTCOMES.labels(outcome=outcome.kind).inc()
        return outcome

    async def start(
        self, user_id: str, scenario_name: str, *, timeout: float | None = None
    ) -> Outcome:
        """Start a scenario for a user, replacing whatever they were doing."""
        scenario = self._registry.get(scenario_name)
        if scenario is None:
            raise ScenarioDefinitionError(f"Unknown scenario: {scenario_name}")

        with structlog.contextvars.bound_contextvars(user_id=user_id):
            async with self._user_lock(user_id):
                outcome = await self._start(user_id, scenario, self._clock(), timeout)

        SCENARIO_OUTCOMES.labels(outcome=outcome.kind).inc()
        return outcome

    async def cancel(self, user_id: str, *, timeout: float | None = None) -> Cancelled:
        """Drop a user's scenario, if any."""
        with structlog.contextvars.bound_contextvars(user_id=user_id):
            async with self._user_lock(user_id):
                outcome = await self._cancel(user_id, timeout)

        SCENARIO_OUTCOMES.labels(outcome=outcome.kind).inc()
        return outcome

    async def current(
        self, user_id: str, *, timeout: float | None = None
    ) -> ConversationState | None:
        """The user's live state, or None when absent, expired or corrupt.

        Runs inside the user's critical section: a read may repopulate the
        cache, which must not race with a completing ``advance``.
        """
        with structlog.contextvars.bound_contextvars(user_id=user_id):
            async with self._user_lock(user_id):
                try:
                    state = await self._store.get(user_id, timeout=timeout)
                except ValidationError as e:
                    logger.warning("corrupt_state_hidden", error=str(e))
                    return None

        if state is None or self._registry.resolve(state) is None:
            return None
        return state

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    async def _advance(self, user_id: str, text: str, timeout: float | None) -> Outcome:
        command = normalize_command(text)
        if command in self._cancel_triggers:
            return await self._cancel(user_id, timeout)

        now = self._clock()
        try:
            state = await self._store.get(user_id, timeout=timeout)
        except ValidationError as e:
            await self._clear_corrupt(user_id, timeout, error=str(e))
            return await self._start_from_trigger(user_id, text, now, timeout)

        if state is None or not state.is_active:
            return await self._start_from_trigger(user_id, text, now, timeout)

        resolved = self._registry.resolve(state)
        if resolved is None:
            await self._clear_corrupt(
                user_id,
                timeout,
                scenario_name=state.scenario_name,
                step_name=state.step_name,
            )
            return await self._start_from_trigger(user_id, text, now, timeout)

        scenario, step = resolved

        if scenario.interruptible:
            other = self._registry.match_trigger(text)
            if other is not None and other.name != scenario.name:
                logger.info(
                    "scenario_interrupted",
                    scenario_name=scenario.name.value,
                    step_name=step.name,
                    replaced_by=other.name.value,
                )
                return await self._start(user_id, other, now, timeout)

        if step.skippable and command in self._skip_triggers:
            logger.debug("scenario_step_skipped", scenario_name=scenario.name.value, step_name=step.name)
            next_step = scenario.sequential_next(step.name)
            return await self._move(state, scenario, next_step, dict(state.data), now, timeout)

        try:
            value = step.validator(text)
        except StepValidationError as e:
            logger.debug(
                "scenario_input_invalid",
                scenario_name=scenario.name.value,
                step_name=step.name,
                reason=e.reason,
            )
            if scenario.extend_ttl_on_activity:
                await self._touch(state, scenario, now, timeout)
            return Invalid(reason=e.reason)

        data = {**state.data, step.key: value}
        next_step = scenario.resolve_next(step, value, data)
        return await self._move(state, scenario, next_step, data, now, timeout)

    async def _clear_corrupt(
        self, user_id: str, timeout: float | None, **details: str | None
    ) -> None:
        """Drop a record that cannot be loaded or names an unknown scenario/step."""
        CORRUPT_STATES.inc()
        logger.error("corrupt_state_cleared", **details)
        await self._store.clear(user_id, timeout=timeout)

    async def _start_from_trigger(
        self, user_id: str, text: str, now: datetime, timeout: float | None
    ) -> Outcome:
        scenario = self._registry.match_trigger(text)
        if scenario is None:
            return NoActiveScenario()
        return await self._start(user_id, scenario, now, timeout)

    async def _start(
        self,
        user_id: str,
        scenario: ScenarioDefinition,
        now: datetime,
        timeout: float | None,
    ) -> Outcome:
        first = scenario.first_step
        state = ConversationState.start(
            user_id, scenario.name.value, first.name, now=now, ttl=scenario.ttl
        )
        try:
            state.check_limits(self._config.limits, now)
        except StateLimitExceededError as e:
            logger.warning("state_limit_exceeded", scenario_name=scenario.name.value, error=str(e))
            return Invalid(reason=str(e))

        await self._store.put(state, timeout=timeout)
        logger.info("scenario_started", scenario_name=scenario.name.value, step_name=first.name)
        return Started(scenario_name=scenario.name.value, step_name=first.name)

    async def _cancel(self, user_id: str, timeout: float | None) -> Cancelled:
        existed = await self._store.clear(user_id, timeout=timeout)
        logger.info("scenario_cancelled", had_state=existed)
        return Cancelled()

    async def _touch(
        self,
        state: ConversationState,
        scenario: ScenarioDefinition,
        now: datetime,
        timeout: float | None,
    ) -> None:
        touched = state.touched(now=now, ttl=scenario.ttl)
        try:
            touched.check_limits(self._config.limits, now)
        except StateLimitExceededError as e:
            logger.warning("state_limit_exceeded", scenario_name=scenario.name.value, error=str(e))
            return
        await self._store.put(touched, timeout=timeout)

    async def _move(
        self,
        state: ConversationState,
        scenario: ScenarioDefinition,
        next_step: str | Literal[End.END],
        data: dict[str, DataValue],
        now: datetime,
        timeout: float | None,
    ) -> Outcome:
        if next_step is END:
            return await self._complete(state, scenario, data, timeout)

        new_state = state.advanced_to(next_step, data, now=now, ttl=scenario.ttl)
        try:
            new_state.check_limits(self._config.limits, now)
        except StateLimitExceededError as e:
            logger.warning("state_limit_exceeded", scenario_name=scenario.name.value, error=str(e))
            return Invalid(reason=str(e))

        await self._store.put(new_state, timeout=timeout)
        logger.debug(
            "scenario_step_advanced",
            scenario_name=scenario.name.value,
            from_step=state.step_name,
            to_step=next_step,
        )
        return Advanced(step_name=next_step)

    async def _complete(
        self,
        state: ConversationState,
        scenario: ScenarioDefinition,
        data: dict[str, DataValue],
        timeout: float | None,
    ) -> Outcome:
        """Run the terminal action; clear the state only if it succeeds.

        On failure the stored state is left as it was before this input,
        so repeating the input runs the action again with the same data.
        """
        if scenario.terminal_action is not None:
            try:
                await scenario.terminal_action(state.user_id, dict(data))
            except TerminalActionError as e:
                TERMINAL_ACTION_FAILURES.labels(scenario=scenario.name.value).inc()
                logger.warning(
                    "terminal_action_failed",
                    scenario_name=scenario.name.value,
                    reason=e.reason,
                )
                return Failed(reason=e.reason)
            except Exception as e:
                TERMINAL_ACTION_FAILURES.labels(scenario=scenario.name.value).inc()
                logger.error(
                    "terminal_action_failed",
                    scenario_name=scenario.name.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return Failed(reason=GENERIC_FAILURE_REASON)

        await self._store.clear(state.user_id, timeout=timeout)
        logger.info("scenario_completed", scenario_name=scenario.name.value)
        return Completed(scenario_name=scenario.name.value, data=dict(data))

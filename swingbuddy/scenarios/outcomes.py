"""Results of a single scenario manager call.

Every outcome carries a ``kind`` tag so the union can be serialized and
parsed back with pydantic.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from swingbuddy.conversation.models import DataValue


class _OutcomeBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class Started(_OutcomeBase):
    """A scenario was started; the user is now at its first step."""

    kind: Literal["started"] = "started"
    scenario_name: str
    step_name: str


class Advanced(_OutcomeBase):
    """Input accepted; the user moved to ``step_name``."""

    kind: Literal["advanced"] = "advanced"
    step_name: str


class Invalid(_OutcomeBase):
    """Input rejected; the user stays at the same step."""

    kind: Literal["invalid"] = "invalid"
    reason: str


class Completed(_OutcomeBase):
    """The terminal action succeeded and the state was cleared."""

    kind: Literal["completed"] = "completed"
    scenario_name: str
    data: dict[str, DataValue]


class Failed(_OutcomeBase):
    """The terminal action failed; the state was kept so the last input can be retried."""

    kind: Literal["failed"] = "failed"
    reason: str


class Cancelled(_OutcomeBase):
    kind: Literal["cancelled"] = "cancelled"


class NoActiveScenario(_OutcomeBase):
    kind: Literal["no_active_scenario"] = "no_active_scenario"


Outcome = Annotated[
    Started | Advanced | Invalid | Completed | Failed | Cancelled | NoActiveScenario,
    Field(discriminator="kind"),
]

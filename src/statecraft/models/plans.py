"""Plan item models.

A plan is an externally authored, ordered list of items per country. Steps
carry an ``execution`` block naming the action to take; constraints forbid
whole categories of action. The engine never writes plans, it only selects
from them (see statecraft.engine.plans).

``execution.action_data`` is deliberately kept as raw collaborator data: a
malformed step is not an error, it is simply never eligible.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from statecraft.errors import ValidationError
from statecraft.models.actions import ActionType
from statecraft.models.base import StatecraftModel

CONDITION_KEYS = (
    "tech_level_gte",
    "infrastructure_level_gte",
    "military_strength_gte",
    "budget_gte",
    "population_gte",
)
"""Condition keys understood in ``when`` and ``stop_when``; others are ignored."""


class PlanExecution(StatecraftModel):
    """The action a step asks for."""

    action_type: ActionType
    action_data: dict[str, Any] = Field(default_factory=dict)


class PlanStep(StatecraftModel):
    """One candidate step.

    Attributes:
        id: Stable step identifier (used to track execution)
        instruction: Human-readable intent
        execution: Action to take, or None for advisory steps
        when: Conditions that must all hold for the step to be eligible
        stop_when: Conditions that retire the step once they all hold;
            a step with stop_when repeats turn after turn until then
        priority: Optional authoring hint, not used for ordering
    """

    kind: Literal["step"] = "step"
    id: str = Field(..., min_length=1)
    instruction: str = Field(default="")
    execution: PlanExecution | None = Field(default=None)
    when: dict[str, int] | None = Field(default=None)
    stop_when: dict[str, int] | None = Field(default=None, alias="stop_when")
    priority: int | None = Field(default=None)


class PlanConstraint(StatecraftModel):
    """Forbid categories of action ("recruit", "attack", "research", "infrastructure")."""

    kind: Literal["constraint"] = "constraint"
    id: str = Field(..., min_length=1)
    instruction: str = Field(default="")
    prohibit: list[str] = Field(default_factory=list)


PlanItem = Annotated[Union[PlanStep, PlanConstraint], Field(discriminator="kind")]

_PLAN_ADAPTER: TypeAdapter = TypeAdapter(list[PlanItem])


def parse_plan(items: list[dict]) -> list[PlanStep | PlanConstraint]:
    """Validate a raw plan, tagging untagged items by their shape.

    Items with a ``prohibit`` list are constraints; everything else is a step.

    Raises:
        ValidationError: If an item cannot be read as either kind
    """
    tagged = []
    for item in items:
        if isinstance(item, dict) and "kind" not in item:
            kind = "constraint" if "prohibit" in item else "step"
            item = {**item, "kind": kind}
        tagged.append(item)
    try:
        return _PLAN_ADAPTER.validate_python(tagged)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid plan: {e}") from e

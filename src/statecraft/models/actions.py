"""Action models for Statecraft.

An Action belongs to one country and one turn. It is created by a player
request or an AI plan step, starts as PENDING, and is consumed exactly once
by the turn processor, which moves it to EXECUTED or REJECTED.

Payloads form a closed tagged union (discriminator ``kind``). Collaborators
send loosely shaped data such as ``{"subType": "attack", "targetCityId": ...}``;
parse_action_data() validates it once at the boundary so that the engine only
ever sees typed payloads.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from statecraft.errors import ValidationError
from statecraft.models.base import StatecraftModel


class ActionType(str, Enum):
    """Domain of an action.

    Inherits from str for proper JSON serialization.
    """

    ECONOMIC = "economic"
    MILITARY = "military"
    RESEARCH = "research"
    DIPLOMACY = "diplomacy"


class ActionStatus(str, Enum):
    """Lifecycle of an action. EXECUTED and REJECTED are terminal."""

    PENDING = "pending"
    EXECUTED = "executed"
    REJECTED = "rejected"


# =============================================================================
# Payloads
# =============================================================================


class ResearchPayload(StatecraftModel):
    """Raise technology by one level."""

    kind: Literal["research"] = "research"
    target_level: int | None = Field(default=None, ge=0)


class InfrastructurePayload(StatecraftModel):
    """Raise infrastructure by one level."""

    kind: Literal["infrastructure"] = "infrastructure"
    target_level: int | None = Field(default=None, ge=0)


class RecruitPayload(StatecraftModel):
    """Add military strength."""

    kind: Literal["recruit"] = "recruit"
    amount: int = Field(default=10, gt=0)


class AttackPayload(StatecraftModel):
    """Attack a city with part of the country's strength.

    Attributes:
        target_city_id: City being attacked
        allocated_strength: Attacker strength committed to the battle
        defender_id: Owner of the city at submission time
        defense_allocation: Strength the defender committed (None = rule-based)
        immediate: True once the submission cost has been paid up front
        cost: Budget paid at submission
    """

    kind: Literal["attack"] = "attack"
    target_city_id: str = Field(..., min_length=1)
    allocated_strength: int = Field(..., gt=0)
    defender_id: str | None = Field(default=None)
    defense_allocation: int | None = Field(default=None, ge=0)
    immediate: bool = Field(default=False)
    cost: int = Field(default=0, ge=0)


class DiplomacyPayload(StatecraftModel):
    """A diplomatic stance toward another country."""

    kind: Literal["diplomacy"] = "diplomacy"
    target_country_id: str | None = Field(default=None)
    stance: str | None = Field(default=None)


ActionPayload = Annotated[
    Union[ResearchPayload, InfrastructurePayload, RecruitPayload, AttackPayload, DiplomacyPayload],
    Field(discriminator="kind"),
]

_PAYLOAD_ADAPTER: TypeAdapter = TypeAdapter(ActionPayload)

PAYLOAD_KINDS: dict[ActionType, frozenset[str]] = {
    ActionType.ECONOMIC: frozenset({"infrastructure"}),
    ActionType.RESEARCH: frozenset({"research"}),
    ActionType.MILITARY: frozenset({"recruit", "attack"}),
    ActionType.DIPLOMACY: frozenset({"diplomacy"}),
}
"""Payload kinds each action type may carry."""

ENGINE_OWNED_FIELDS = frozenset({
    "immediate",
    "cost",
    "defenderId",
    "defender_id",
    "defenseAllocation",
    "defense_allocation",
})
"""Attack fields set only by statecraft.engine.submission, never by collaborators."""


def _coerce_action_type(action_type: ActionType | str) -> ActionType:
    try:
        return ActionType(action_type)
    except ValueError as e:
        raise ValidationError(f"Unknown action type: {action_type!r}") from e


def parse_action_data(action_type: ActionType | str, data: dict[str, Any] | None) -> Any:
    """Validate raw action data into a typed payload.

    Accepts either an already-tagged payload (``{"kind": "recruit", ...}``) or
    the collaborator shape keyed by ``subType``.

    Args:
        action_type: Domain of the action
        data: Raw payload dictionary

    Returns:
        One of the payload models

    Raises:
        ValidationError: If the data does not fit the action type, or sets a
            field the engine owns (payment and defense of attacks)

    Examples:
        >>> parse_action_data("military", {"subType": "recruit", "amount": 20}).amount
        20
    """
    action_type = _coerce_action_type(action_type)
    data = dict(data or {})

    if "kind" not in data:
        engine_owned = sorted(ENGINE_OWNED_FIELDS.intersection(data))
        if engine_owned:
            raise ValidationError(f"Action data may not set {', '.join(engine_owned)}")
        sub_type = data.pop("subType", data.pop("sub_type", None))
        if action_type == ActionType.ECONOMIC:
            if sub_type != "infrastructure":
                raise ValidationError(f"Unsupported economic subType: {sub_type!r}")
            data["kind"] = "infrastructure"
        elif action_type == ActionType.RESEARCH:
            data["kind"] = "research"
        elif action_type == ActionType.MILITARY:
            if sub_type not in ("recruit", "attack"):
                raise ValidationError(f"Unsupported military subType: {sub_type!r}")
            data["kind"] = sub_type
        else:
            data["kind"] = "diplomacy"

    try:
        payload = _PAYLOAD_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {action_type.value} action data: {e}") from e

    if payload.kind not in PAYLOAD_KINDS[action_type]:
        raise ValidationError(
            f"Payload kind {payload.kind!r} does not belong to {action_type.value} actions"
        )
    return payload


class Action(StatecraftModel):
    """A country's intended action for one turn.

    Attributes:
        id: Unique action identifier
        game_id: Game the action belongs to
        country_id: Acting country
        turn: Turn the action is resolved in
        action_type: Domain (economic, military, research, diplomacy)
        payload: Typed, domain-specific data (wire name ``actionData``)
        status: pending until resolved, then executed or rejected
        reason: Why the action was rejected, or a short execution note
    """

    id: str = Field(..., min_length=1)
    game_id: str = Field(default="")
    country_id: str = Field(..., min_length=1)
    turn: int = Field(..., ge=1)
    action_type: ActionType
    payload: ActionPayload = Field(alias="actionData")
    status: ActionStatus = Field(default=ActionStatus.PENDING)
    reason: str | None = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def parse_raw_payload(cls, data: Any) -> Any:
        """Convert untagged collaborator payloads into tagged ones."""
        if not isinstance(data, dict):
            return data
        key = "actionData" if "actionData" in data else "payload"
        raw = data.get(key)
        if isinstance(raw, dict) and "kind" not in raw:
            action_type = data.get("actionType", data.get("action_type"))
            data = {**data, key: parse_action_data(action_type, raw)}
        return data

    @model_validator(mode="after")
    def check_payload_matches_type(self) -> Action:
        """Reject payloads from a different domain."""
        if self.payload.kind not in PAYLOAD_KINDS[self.action_type]:
            raise ValueError(
                f"Payload kind {self.payload.kind!r} does not belong to "
                f"{self.action_type.value} actions"
            )
        return self

    @property
    def is_attack(self) -> bool:
        return self.payload.kind == "attack"

    def executed(self, note: str | None = None) -> Action:
        """Copy of this action marked executed."""
        return self.model_copy(update={"status": ActionStatus.EXECUTED, "reason": note})

    def rejected(self, reason: str) -> Action:
        """Copy of this action marked rejected."""
        return self.model_copy(update={"status": ActionStatus.REJECTED, "reason": reason})

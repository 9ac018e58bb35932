"""Deal and commitment models.

A Deal binds a proposing and a receiving country to ordered lists of
commitments. Commitments are a closed tagged union on ``type``:
resource_transfer (resource + amount) and budget_transfer (amount).

Lifecycle:
    proposed -> accepted -> active -> expired
    proposed -> rejected
    proposed -> expired (unconfirmed past turn_expires)
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from statecraft.errors import ValidationError
from statecraft.models.base import StatecraftModel


class DealStatus(str, Enum):
    """Deal lifecycle states."""

    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    ACTIVE = "active"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ResourceTransfer(StatecraftModel):
    """Give ``amount`` units of ``resource`` to the other party."""

    type: Literal["resource_transfer"] = "resource_transfer"
    resource: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)


class BudgetTransfer(StatecraftModel):
    """Pay ``amount`` from the treasury to the other party."""

    type: Literal["budget_transfer"] = "budget_transfer"
    amount: int = Field(..., gt=0)


Commitment = Annotated[Union[ResourceTransfer, BudgetTransfer], Field(discriminator="type")]

_COMMITMENTS_ADAPTER: TypeAdapter = TypeAdapter(list[Commitment])


def parse_commitments(data: list[dict]) -> list[ResourceTransfer | BudgetTransfer]:
    """Validate a raw commitment list, e.g. one produced by deal extraction.

    Raises:
        ValidationError: If any commitment is malformed
    """
    try:
        return _COMMITMENTS_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid commitments: {e}") from e


class DealTerms(StatecraftModel):
    """What each side of a deal promises."""

    proposer_commitments: list[Commitment] = Field(default_factory=list)
    receiver_commitments: list[Commitment] = Field(default_factory=list)


class Deal(StatecraftModel):
    """An agreement between two countries.

    Attributes:
        id: Unique deal identifier
        game_id: Game the deal belongs to
        proposing_country_id: Country that proposed the deal
        receiving_country_id: Country asked to accept it
        deal_type: Free-form category ("trade", "trade_offer", ...)
        terms: Commitments of both sides
        status: Lifecycle state
        turn_created: Turn the deal was proposed
        turn_expires: Turn at which an unexecuted or active deal lapses
        requires_confirmation: Whether the receiver must confirm before execution
    """

    id: str = Field(..., min_length=1)
    game_id: str = Field(default="")
    proposing_country_id: str = Field(..., min_length=1)
    receiving_country_id: str = Field(..., min_length=1)
    deal_type: str = Field(default="trade")
    terms: DealTerms = Field(default_factory=DealTerms)
    status: DealStatus = Field(default=DealStatus.PROPOSED)
    turn_created: int = Field(..., ge=1)
    turn_expires: int | None = Field(default=None)
    requires_confirmation: bool = Field(default=False)

    def with_status(self, status: DealStatus) -> Deal:
        """Copy of this deal in a new lifecycle state."""
        return self.model_copy(update={"status": status})

    def is_expired_at(self, turn: int) -> bool:
        """True once ``turn`` reaches the deal's expiry turn."""
        return self.turn_expires is not None and turn >= self.turn_expires

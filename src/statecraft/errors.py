"""Error taxonomy for Statecraft turn processing.

Item-level errors (ValidationError, InsufficientResourceError) are recovered
locally: the offending action or trade is skipped and reported as a rejection.
Turn-level errors (InfrastructureError, StateInconsistencyError) abort the
whole turn advance and leave the previously committed turn untouched.
"""

from __future__ import annotations


class StatecraftError(Exception):
    """Base class for all Statecraft errors."""


class ValidationError(StatecraftError):
    """A malformed or schema-mismatched action, deal or plan payload."""


class InsufficientResourceError(StatecraftError):
    """A commitment or action would drive budget or a resource negative.

    Attributes:
        country_id: Country that could not pay
        resource: Resource id, or "budget"
        required: Amount that was needed
        available: Amount the country actually held
    """

    def __init__(self, country_id: str, resource: str, required: int, available: int):
        self.country_id = country_id
        self.resource = resource
        self.required = required
        self.available = available
        super().__init__(
            f"Country {country_id} needs {required} {resource} but has {available}"
        )


class InfrastructureError(StatecraftError):
    """A required external dependency (the game store) failed."""


class StateInconsistencyError(StatecraftError):
    """Loaded state is missing or stale for the turn being advanced."""

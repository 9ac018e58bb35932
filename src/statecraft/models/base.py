"""Shared pydantic base for Statecraft records.

Records travel between the engine and its collaborators (the game store,
the chat front end) as camelCase dictionaries. Python code uses snake_case
attributes; either spelling is accepted on input.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from statecraft.errors import ValidationError

ModelT = TypeVar("ModelT", bound="StatecraftModel")


class StatecraftModel(BaseModel):
    """Base record with camelCase wire aliases and dict/JSON round-tripping."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary using wire names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls: type[ModelT], data: dict) -> ModelT:
        """Deserialize from a dictionary.

        Raises:
            ValidationError: If the data does not match the record schema
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {cls.__name__}: {e}") from e

    def to_json(self) -> str:
        """Serialize to a JSON string."""
        return self.model_dump_json(indent=2, by_alias=True)

    @classmethod
    def from_json(cls: type[ModelT], json_str: str) -> ModelT:
        """Deserialize from a JSON string."""
        try:
            return cls.model_validate_json(json_str)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {cls.__name__}: {e}") from e

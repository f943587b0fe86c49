"""Base Pydantic model configuration for cardcheck models.

All result models inherit from CardCheckBaseModel:
- Immutability (frozen=True), results never change after a validation returns
- Strict validation (extra="forbid") to catch typos and invalid fields
- camelCase aliases so ``model_dump(by_alias=True)`` matches the A2A JSON style
- Flexible field naming (populate_by_name=True) so Python code uses snake_case
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CardCheckBaseModel(BaseModel):
    """Base model for all cardcheck result entities.

    Example:
        >>> class Thing(CardCheckBaseModel):
        ...     max_score: int
        >>> Thing(max_score=5).model_dump(by_alias=True)
        {'maxScore': 5}
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=False,
        validate_default=True,
    )

    def to_json_dict(self, *, exclude_none: bool = False) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)

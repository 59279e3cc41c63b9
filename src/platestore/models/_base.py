"""Base model for plate record bodies.

Record files are written by the browser tooling as camelCase JSON
(``addedAt``, ``flagReason`` ...).  :class:`PlateBaseModel` maps those
keys onto snake_case fields with ``alias_generator=to_camel`` and drops
``null`` values before validation so field defaults apply instead.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class PlateBaseModel(BaseModel):
    """Base for camelCase JSON bodies stored in the repository."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {key: value for key, value in values.items() if value is not None}

    def dump_wire(self) -> dict[str, Any]:
        """Return the JSON-ready body using the camelCase wire keys."""
        return self.model_dump(mode="json", by_alias=True)

"""Plate record model."""

from __future__ import annotations

from pydantic import field_validator

from platestore.models._base import PlateBaseModel
from platestore.normalize import normalize_plate


class PlateRecord(PlateBaseModel):
    """One persisted plate.

    ``plate`` is the identity of the record and decides where the record
    is stored.  Every other field may change; an update always replaces
    the whole record.
    """

    plate: str
    """Canonical plate (uppercase letters and digits only)."""
    owner: str = ""
    """Free-text owner description."""
    notes: str = ""
    """Free-text notes."""
    added_at: str = ""
    """ISO-8601 timestamp of the last write."""
    added_by: str = ""
    """Login of the writer, when it could be resolved."""
    flagged: bool = False
    flag_reason: str = ""
    """Only meaningful when ``flagged`` is set."""

    @field_validator("plate", mode="before")
    @classmethod
    def _canonical_plate(cls, value: object) -> str:
        plate = normalize_plate(value if isinstance(value, str) else None)
        if not plate:
            raise ValueError("plate must contain at least one letter or digit")
        return plate

    @field_validator("owner", "notes", "added_by", "flag_reason", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

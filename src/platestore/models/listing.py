"""Presentation row for record listings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ListingRow(BaseModel):
    """Display-ready summary of one listed record."""

    model_config = ConfigDict(frozen=True)

    key: str
    notes: str = ""
    flagged: bool = False
    flag_reason: str = ""
    added_at: str = "unknown"
    path: str = ""

    def summary(self) -> str:
        """Single-line rendering used by the command line."""
        parts = [self.key]
        if self.notes:
            parts.append(self.notes)
        if self.flagged:
            parts.append(f"FLAGGED {self.flag_reason}".rstrip())
        parts.append(f"Added: {self.added_at}")
        return "  |  ".join(parts)

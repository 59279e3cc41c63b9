"""Plate normalization and plausibility checks.

Validation is advisory: many legacy formats are accepted and a failed
check never blocks a lookup or save.
"""

from __future__ import annotations

import logging
import re
import warnings

from platestore.exceptions import PlateValidationWarning

_logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^A-Z0-9]")

# Current format: two letters, two digits, three letters (e.g. AB12CDE).
_CURRENT_FORMAT = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z]{3}$")
# Loose legacy shapes: 1-3 letters, 1-4 digits, up to 3 trailing letters.
_LEGACY_FORMAT = re.compile(r"^[A-Z]{1,3}[0-9]{1,4}[A-Z]{0,3}$")


def normalize_plate(value: str | None) -> str:
    """Uppercase *value* and drop everything outside ``A-Z0-9``."""
    if not value:
        return ""
    return _NON_ALNUM.sub("", value.upper())


def is_plausible_plate(value: str | None) -> bool:
    """Return ``True`` when the normalized plate matches a known shape."""
    plate = normalize_plate(value)
    if not plate:
        return False
    return bool(_CURRENT_FORMAT.match(plate) or _LEGACY_FORMAT.match(plate))


def prepare_plate(value: str | None) -> tuple[str, bool]:
    """Normalize user input and run the advisory plausibility check.

    Returns ``(plate, plausible)``.  An implausible plate emits a
    :class:`PlateValidationWarning` but is still returned so the caller
    can carry on.
    """
    plate = normalize_plate(value)
    plausible = is_plausible_plate(plate)
    if not plausible:
        _logger.warning("Plate %r looks invalid (basic check)", plate)
        warnings.warn(
            f"Plate {plate!r} looks invalid (basic check)",
            PlateValidationWarning,
            stacklevel=2,
        )
    return plate, plausible

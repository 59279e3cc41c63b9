"""Redaction of credentials and file payloads in debug logs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

# Compared case-insensitively against mapping keys.
_HIDDEN_KEYS: frozenset[str] = frozenset({"token", "authorization", "content"})

_MAX_STRING = 512


def redact_for_log(value: Any) -> Any:
    """Copy a JSON-like request or response body with secrets masked.

    Listing responses are lists of objects, so lists are walked too.
    Long strings are cut to keep log lines readable.
    """
    if isinstance(value, Mapping):
        return {key: "<redacted>" if str(key).lower() in _HIDDEN_KEYS else redact_for_log(item) for key, item in value.items()}
    if isinstance(value, list):
        return [redact_for_log(item) for item in value]
    if isinstance(value, str) and len(value) > _MAX_STRING:
        return f"{value[:_MAX_STRING]}…<truncated>"
    return value

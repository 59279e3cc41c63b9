"""Authenticated user endpoint: ``GET /user``."""

from __future__ import annotations

from typing import Any

ENDPOINT = "/user"


def parse_login(response: Any) -> str:
    """Extract the login name, or ``""`` when the payload has none."""
    if not isinstance(response, dict):
        return ""
    login = response.get("login")
    return login if isinstance(login, str) else ""

"""Custom exception hierarchy for platestore."""

from __future__ import annotations


class PlateStoreError(Exception):
    """Base exception for all platestore errors."""


class PlateConfigError(PlateStoreError):
    """Invalid or missing configuration."""


class PlateTransportError(PlateStoreError):
    """Failure before a usable store response was obtained.

    Covers network errors, timeouts, invalid JSON and payloads whose
    transport encoding cannot be decoded.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class PlateStoreApiError(PlateStoreError):
    """The store answered with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        body: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body
        super().__init__(message)


class PlateConflictError(PlateStoreApiError):
    """Write rejected because the version token is stale.

    The record changed on the store since it was fetched.  Callers may
    re-fetch and retry; the client never does so on its own.
    """


class PlateRecordError(PlateStoreError):
    """A fetched file is not a valid plate record."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class PlateValidationWarning(UserWarning):
    """Plate text does not look like a known plate format (advisory only)."""

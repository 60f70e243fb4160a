"""Error taxonomy shared by the live-data path and the integrations.

Every error carries the HTTP status it maps to and a machine-readable code so
route handlers can translate it into a JSON body at their boundary.
"""

from __future__ import annotations

from fastapi import status


class PlaymakerError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class UpstreamUnavailable(PlaymakerError):
    """A third-party call failed (network error, timeout or non-2xx)."""

    code = "UPSTREAM_UNAVAILABLE"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.upstream_status = upstream_status


class ProviderUnavailable(UpstreamUnavailable):
    """The sports data provider specifically failed."""

    code = "PROVIDER_UNAVAILABLE"


class NotFound(PlaymakerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ValidationError(PlaymakerError):
    """A required request field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class ConfigurationError(PlaymakerError):
    """A credential or environment variable required by a feature is absent."""

    code = "CONFIGURATION_ERROR"

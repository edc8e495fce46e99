"""Exception hierarchy for the Nango client layer.

The lifecycle layer never lets these escape to the host; it turns each
one into a labelled :class:`~nango_provider.diagnostics.Diagnostic`.
"""

from __future__ import annotations

from typing import Any


class NangoError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(NangoError):
    """Raised when provider configuration is missing or malformed."""


class MissingEnvironmentKey(ConfigError):
    """Raised when no environment key is configured or set in the environment."""


class TransportError(NangoError):
    """Raised when a request could not be delivered (network failure or retries exhausted)."""


class DecodeError(NangoError):
    """Raised when a response body cannot be decoded."""


class MappingError(DecodeError):
    """Raised when a decoded body does not have the expected shape."""


class ApiError(NangoError):
    """Raised for any non-2xx response from the Nango API."""

    def __init__(self, method: str, url: str, status_code: int, body: Any) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"{method} {url} returned HTTP {status_code}: {body!r}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

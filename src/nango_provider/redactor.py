"""Secret redaction for logged HTTP traffic.

Runs inside :class:`~nango_provider.transport.LoggingTransport` *before*
anything reaches a log handler, so client secrets and the environment
key are never written out.  Non-secret fields pass through untouched.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

REDACTED = "[redacted]"

# Field names whose values are always secret, compared lower-cased
_SECRET_FIELDS = {
    "client_secret",
    "secret",
    "secret_key",
    "api_key",
    "access_token",
    "refresh_token",
    "private_key",
    "password",
    "environment_key",
}
_SECRET_HEADERS = {"authorization", "proxy-authorization", "cookie", "set-cookie"}


@dataclass
class RedactionPolicy:
    """Configurable redaction rules.

    Attributes
    ----------
    extra_fields:
        Additional body field names to treat as secret.
    custom_patterns:
        List of ``(regex, replacement)`` pairs applied to every string
        value that survives field-based redaction.
    """

    extra_fields: set[str] = field(default_factory=set)
    custom_patterns: list[tuple[str, str]] = field(default_factory=list)


class SecretRedactor:
    """Applies :class:`RedactionPolicy` to headers and JSON bodies."""

    def __init__(self, policy: RedactionPolicy | None = None) -> None:
        self.policy = policy or RedactionPolicy()
        self._fields = _SECRET_FIELDS | {f.lower() for f in self.policy.extra_fields}

    def redact_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        return {
            name: (REDACTED if name.lower() in _SECRET_HEADERS else value)
            for name, value in headers.items()
        }

    def redact_obj(self, obj: Any) -> Any:
        """Return a redacted deep copy of a JSON-like object."""
        if isinstance(obj, dict):
            out: dict[str, Any] = {}
            for key, value in obj.items():
                if isinstance(key, str) and key.lower() in self._fields and value not in (None, ""):
                    out[key] = REDACTED
                else:
                    out[key] = self.redact_obj(value)
            return out
        if isinstance(obj, list):
            return [self.redact_obj(item) for item in obj]
        if isinstance(obj, str):
            return self._apply_patterns(obj)
        return obj

    def redact_body(self, raw: bytes) -> str:
        """Redact a raw HTTP body for logging.

        JSON bodies are redacted field by field.  Anything else is logged
        only as a length marker, since secrets cannot be located in it.
        """
        if not raw:
            return ""
        try:
            decoded = json.loads(raw)
        except ValueError:
            return f"<{len(raw)} bytes, non-JSON>"
        return json.dumps(self.redact_obj(decoded), separators=(",", ":"))

    def _apply_patterns(self, value: str) -> str:
        for pattern, replacement in self.policy.custom_patterns:
            value = re.sub(pattern, replacement, value)
        return value

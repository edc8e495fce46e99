"""Integration entity and its mapping to and from Nango's wire format.

The declarative side names the upstream provider ``provider_type`` and
keeps scopes as a list; the wire side calls it ``provider`` and sends
scopes as one comma-delimited string.  Everything else is a straight
field copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from nango_provider.errors import MappingError


@dataclass
class IntegrationCredentials:
    client_id: str
    client_secret: str
    type: str
    scopes: list[str] = field(default_factory=list)


@dataclass
class Integration:
    """Declarative state of one ``nango_integration``."""

    unique_key: str
    display_name: str | None = None
    provider_type: str | None = None
    updated_at: str | None = None
    credentials: IntegrationCredentials | None = None

    def to_dict(self) -> dict[str, Any]:
        creds = None
        if self.credentials is not None:
            creds = {
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
                "type": self.credentials.type,
                "scopes": list(self.credentials.scopes),
            }
        return {
            "unique_key": self.unique_key,
            "display_name": self.display_name,
            "provider_type": self.provider_type,
            "updated_at": self.updated_at,
            "credentials": creds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Integration":
        """Build from a plain attribute mapping, e.g. a YAML plan."""
        creds = data.get("credentials")
        return cls(
            unique_key=data["unique_key"],
            display_name=data.get("display_name"),
            provider_type=data.get("provider_type"),
            updated_at=data.get("updated_at"),
            credentials=IntegrationCredentials(
                client_id=creds["client_id"],
                client_secret=creds["client_secret"],
                type=creds["type"],
                scopes=list(creds.get("scopes") or []),
            ) if creds else None,
        )


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------

def flatten_scopes(scopes: list[str] | None) -> str:
    """``["a", "b"]`` → ``"a,b"``; empty and ``None`` both give ``""``."""
    return ",".join(scopes or [])


def unflatten_scopes(raw: str | list[str] | None) -> list[str]:
    """``"a,b"`` → ``["a", "b"]``; empty and ``None`` both give ``[]``.

    Segments are kept verbatim so a planned list reads back unchanged.
    """
    if not raw:
        return []
    if isinstance(raw, list):
        return [str(s) for s in raw]
    return raw.split(",")


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------

def _credentials_payload(creds: IntegrationCredentials | None) -> dict[str, str]:
    if creds is None:
        raise MappingError("credentials are required on create and update")
    return {
        "client_id": creds.client_id,
        "client_secret": creds.client_secret,
        "type": creds.type,
        "scopes": flatten_scopes(creds.scopes),
    }


def to_create_request(plan: Integration) -> dict[str, Any]:
    return {
        "unique_key": plan.unique_key,
        "display_name": plan.display_name or "",
        "provider": plan.provider_type,
        "credentials": _credentials_payload(plan.credentials),
    }


def to_update_request(plan: Integration) -> dict[str, Any]:
    """Like :func:`to_create_request` minus ``provider``, which Nango treats as immutable."""
    return {
        "unique_key": plan.unique_key,
        "display_name": plan.display_name or "",
        "credentials": _credentials_payload(plan.credentials),
    }


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------

def unwrap(body: Any) -> dict[str, Any]:
    """Strip Nango's ``{"data": {...}}`` envelope when present."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    if not isinstance(body, dict):
        raise MappingError(f"expected a JSON object, got {type(body).__name__}")
    return body


def credentials_from_wire(wire: Any) -> IntegrationCredentials | None:
    if not isinstance(wire, dict) or not wire:
        return None
    return IntegrationCredentials(
        client_id=wire.get("client_id") or "",
        client_secret=wire.get("client_secret") or "",
        type=wire.get("type") or "",
        scopes=unflatten_scopes(wire.get("scopes")),
    )


def from_wire(body: Any, *, with_credentials: bool = True) -> Integration:
    """Map a single-integration response into declarative state."""
    wire = unwrap(body)
    unique_key = wire.get("unique_key")
    if not unique_key:
        raise MappingError("response has no unique_key")
    return Integration(
        unique_key=unique_key,
        display_name=wire.get("display_name"),
        provider_type=wire.get("provider"),
        updated_at=wire.get("updated_at"),
        credentials=credentials_from_wire(wire.get("credentials")) if with_credentials else None,
    )


def list_from_wire(body: Any) -> list[Integration]:
    """Map the ``GET /integrations`` envelope, keeping server order.

    The list endpoint never returns credentials, so none are mapped.
    """
    if not isinstance(body, dict) or not isinstance(body.get("data"), list):
        raise MappingError("expected an object with a 'data' list")
    return [from_wire(item, with_credentials=False) for item in body["data"]]

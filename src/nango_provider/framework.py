"""Capability interface the orchestration host drives.

Each resource type implements :class:`Resource` and each data source
implements :class:`DataSource`.  The interface is intentionally minimal:
metadata, schema, configure and the lifecycle calls.  Diffing plans
against state is the host's job, never ours.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from nango_provider.client import NangoClient
from nango_provider.diagnostics import Diagnostics

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Schema description
# ---------------------------------------------------------------------------

@dataclass
class Attribute:
    """One attribute of a declarative schema."""

    type: str  # "string" | "list" | "object" | "list_object"
    description: str = ""
    required: bool = False
    optional: bool = False
    computed: bool = False
    sensitive: bool = False
    element_type: str | None = None  # for "list"
    attributes: dict[str, "Attribute"] = field(default_factory=dict)  # for nested types


@dataclass
class Schema:
    attributes: dict[str, Attribute]
    description: str = ""

    def required_names(self) -> list[str]:
        return [name for name, attr in self.attributes.items() if attr.required]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

@dataclass
class ResourceResponse(Generic[T]):
    """Result of one lifecycle call.

    ``state`` is ``None`` when the resource should be dropped from the
    host's state (after delete, or when a read finds it gone).
    """

    state: T | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class DataSourceResponse(Generic[T]):
    state: T | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

class _Configurable:
    """Shared ``configure`` handling for resources and data sources."""

    _kind = "Resource"

    def __init__(self) -> None:
        self.client: NangoClient | None = None

    def configure(self, provider_data: Any) -> Diagnostics:
        """Accept the provider's shared client.

        ``None`` is ignored because the host may configure resources before
        the provider itself has been configured.
        """
        diags = Diagnostics()
        if provider_data is None:
            return diags
        if not isinstance(provider_data, NangoClient):
            diags.add_error(
                f"Unexpected {self._kind} Configure Type",
                f"Expected NangoClient, got: {type(provider_data).__name__}. "
                "Please report this issue to the provider developers.",
            )
            return diags
        self.client = provider_data
        return diags

    def _require_client(self, diags: Diagnostics) -> NangoClient | None:
        if self.client is None:
            diags.add_error(
                f"Unconfigured {self._kind}",
                "The provider has not been configured; no API client is available.",
            )
        return self.client


class Resource(_Configurable, ABC, Generic[T]):
    """A managed resource type with full lifecycle."""

    @abstractmethod
    def metadata(self, provider_type_name: str) -> str:
        """Return the resource type name, e.g. ``'nango_integration'``."""
        ...

    @abstractmethod
    def schema(self) -> Schema:
        ...

    @abstractmethod
    async def create(self, plan: T) -> ResourceResponse[T]:
        ...

    @abstractmethod
    async def read(self, state: T) -> ResourceResponse[T]:
        ...

    @abstractmethod
    async def update(self, plan: T, state: T | None = None) -> ResourceResponse[T]:
        ...

    @abstractmethod
    async def delete(self, state: T) -> ResourceResponse[T]:
        ...

    @abstractmethod
    async def import_state(self, import_id: str) -> ResourceResponse[T]:
        ...


class DataSource(_Configurable, ABC, Generic[T]):
    """A read-only data source."""

    _kind = "Data Source"

    @abstractmethod
    def metadata(self, provider_type_name: str) -> str:
        ...

    @abstractmethod
    def schema(self) -> Schema:
        ...

    @abstractmethod
    async def read(self) -> DataSourceResponse[T]:
        ...

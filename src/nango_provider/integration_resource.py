"""``nango_integration`` resource: lifecycle of one Nango integration."""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

from nango_provider.diagnostics import Diagnostics
from nango_provider.errors import ApiError, DecodeError, MappingError, NangoError
from nango_provider.framework import Attribute, Resource, ResourceResponse, Schema
from nango_provider.models import (
    Integration,
    credentials_from_wire,
    from_wire,
    to_create_request,
    to_update_request,
    unwrap,
)

logger = logging.getLogger(__name__)

# Full-detail reads ask for webhook and credential blocks
DETAIL_PARAMS = [("include", "webhook"), ("include", "credentials")]


def integration_path(unique_key: str) -> str:
    return f"/integrations/{quote(unique_key, safe='')}"


def credentials_schema(*, computed: bool = False) -> Attribute:
    """Nested ``credentials`` attribute, shared with the data source."""
    flags: dict[str, Any] = {"computed": True} if computed else {"required": True}
    return Attribute(
        type="object",
        description="The credentials for this integration",
        **flags,
        attributes={
            "client_id": Attribute(type="string", description="The client ID", **flags),
            "client_secret": Attribute(
                type="string", description="The client secret", sensitive=True, **flags
            ),
            "type": Attribute(type="string", description="The type of credential", **flags),
            "scopes": Attribute(
                type="list",
                element_type="string",
                description="The scopes for this credential",
                **({"computed": True} if computed else {"optional": True}),
            ),
        },
    )


def report_error(diags: Diagnostics, summary: str, exc: NangoError) -> None:
    """Turn a client-layer exception into a labelled error diagnostic."""
    if isinstance(exc, DecodeError):
        diags.add_error("Unable to Decode JSON", str(exc))
    elif isinstance(exc, ApiError):
        body = exc.body if isinstance(exc.body, str) else json.dumps(exc.body)
        diags.add_error(summary, f"{exc.method} {exc.url} returned HTTP {exc.status_code}: {body}")
    else:
        diags.add_error(summary, str(exc))


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _missing_updated_at(diags: Diagnostics, stage: str, unique_key: str) -> str:
    diags.add_warning(
        "Missing updated_at",
        f"The {stage} response for {unique_key} carried no updated_at; "
        "recorded the local time instead. The next refresh will correct it.",
    )
    return _now()


class IntegrationResource(Resource[Integration]):
    """Create, read, update, delete and import ``nango_integration``."""

    def metadata(self, provider_type_name: str) -> str:
        return f"{provider_type_name}_integration"

    def schema(self) -> Schema:
        return Schema(
            description="An integration configured in Nango.",
            attributes={
                "unique_key": Attribute(
                    type="string",
                    required=True,
                    description="The integration ID that you created in Nango.",
                ),
                "display_name": Attribute(
                    type="string", required=True, description="The provider display name."
                ),
                "provider_type": Attribute(
                    type="string",
                    required=True,
                    description="The Nango provider this integration connects to, e.g. `github`.",
                ),
                "updated_at": Attribute(
                    type="string", computed=True, description="Last time it was updated"
                ),
                "credentials": credentials_schema(),
            },
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create(self, plan: Integration) -> ResourceResponse[Integration]:
        resp: ResourceResponse[Integration] = ResourceResponse()
        client = self._require_client(resp.diagnostics)
        if client is None:
            return resp

        payload = self._marshal(to_create_request, plan, resp.diagnostics)
        if payload is None:
            return resp

        try:
            await client.post("/integrations", json=payload)
        except NangoError as exc:
            report_error(resp.diagnostics, "Unable to Create Integration", exc)
            return resp
        logger.info("Created integration %s", plan.unique_key)

        # Read back so updated_at matches what later reads will return
        try:
            fetched = await client.get(integration_path(plan.unique_key), params=DETAIL_PARAMS)
            remote = from_wire(fetched.body)
        except NangoError as exc:
            report_error(resp.diagnostics, "Unable to Get Integration", exc)
            return resp

        resp.state = dataclasses.replace(
            plan, unique_key=remote.unique_key, updated_at=remote.updated_at
        )
        if not remote.updated_at:
            resp.state.updated_at = _missing_updated_at(resp.diagnostics, "read-back", plan.unique_key)
        return resp

    async def read(self, state: Integration) -> ResourceResponse[Integration]:
        resp: ResourceResponse[Integration] = ResourceResponse(state=state)
        client = self._require_client(resp.diagnostics)
        if client is None:
            return resp

        try:
            fetched = await client.get(integration_path(state.unique_key), params=DETAIL_PARAMS)
            remote = from_wire(fetched.body)
        except ApiError as exc:
            if exc.is_not_found:
                logger.info("Integration %s no longer exists, dropping from state", state.unique_key)
                resp.state = None
                resp.diagnostics.add_warning(
                    "Integration Not Found",
                    f"Integration {state.unique_key} was not found and has been removed from state.",
                )
                return resp
            report_error(resp.diagnostics, "Error Reading Integration", exc)
            return resp
        except NangoError as exc:
            report_error(resp.diagnostics, "Error Reading Integration", exc)
            return resp

        resp.state = dataclasses.replace(
            state,
            display_name=remote.display_name,
            provider_type=remote.provider_type,
            updated_at=remote.updated_at,
            credentials=remote.credentials or state.credentials,
        )
        return resp

    async def update(
        self, plan: Integration, state: Integration | None = None
    ) -> ResourceResponse[Integration]:
        resp: ResourceResponse[Integration] = ResourceResponse(state=state)
        client = self._require_client(resp.diagnostics)
        if client is None:
            return resp

        if state is not None and state.unique_key != plan.unique_key:
            resp.diagnostics.add_error(
                "Cannot Change unique_key",
                f"unique_key is immutable ({state.unique_key!r} -> {plan.unique_key!r}); "
                "replace the resource instead.",
            )
            return resp

        payload = self._marshal(to_update_request, plan, resp.diagnostics)
        if payload is None:
            return resp

        try:
            updated = await client.patch(integration_path(plan.unique_key), json=payload)
            remote = unwrap(updated.body) if updated.body is not None else {}
        except NangoError as exc:
            report_error(resp.diagnostics, "Unable to Update Integration", exc)
            return resp
        logger.info("Updated integration %s", plan.unique_key)

        new_state = dataclasses.replace(plan)
        if remote.get("display_name"):
            new_state.display_name = remote["display_name"]
        if remote.get("credentials"):
            new_state.credentials = credentials_from_wire(remote["credentials"])
        if remote.get("updated_at"):
            new_state.updated_at = remote["updated_at"]
        else:
            new_state.updated_at = _missing_updated_at(resp.diagnostics, "update", plan.unique_key)
        resp.state = new_state
        return resp

    async def delete(self, state: Integration) -> ResourceResponse[Integration]:
        resp: ResourceResponse[Integration] = ResourceResponse(state=state)
        client = self._require_client(resp.diagnostics)
        if client is None:
            return resp

        try:
            await client.delete(integration_path(state.unique_key))
        except NangoError as exc:
            report_error(resp.diagnostics, "Unable to Delete Integration", exc)
            return resp
        logger.info("Deleted integration %s", state.unique_key)
        resp.state = None
        return resp

    async def import_state(self, import_id: str) -> ResourceResponse[Integration]:
        """Seed state from a ``unique_key``; the following read fills the rest."""
        resp: ResourceResponse[Integration] = ResourceResponse()
        if not import_id or not import_id.strip():
            resp.diagnostics.add_error(
                "Invalid Import ID", "Expected the integration's unique_key as import ID."
            )
            return resp
        resp.state = Integration(unique_key=import_id.strip())
        return resp

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _marshal(build, plan: Integration, diags: Diagnostics) -> dict[str, Any] | None:
        try:
            payload = build(plan)
            json.dumps(payload)
        except (MappingError, TypeError, ValueError) as exc:
            diags.add_error("Unable to Marshal JSON", str(exc))
            return None
        return payload

"""``nango_integrations`` data source: every integration in the environment."""

from __future__ import annotations

import logging

from nango_provider.errors import NangoError
from nango_provider.framework import Attribute, DataSource, DataSourceResponse, Schema
from nango_provider.integration_resource import credentials_schema, report_error
from nango_provider.models import Integration, list_from_wire

logger = logging.getLogger(__name__)


class IntegrationDataSource(DataSource[list[Integration]]):
    """Lists integrations in server order.

    ``GET /integrations`` never returns credentials, so ``credentials`` is
    ``None`` on every item.  No pagination: the endpoint returns everything.
    """

    def metadata(self, provider_type_name: str) -> str:
        return f"{provider_type_name}_integrations"

    def schema(self) -> Schema:
        item = {
            "unique_key": Attribute(
                type="string", computed=True,
                description="The integration ID that you created in Nango.",
            ),
            "display_name": Attribute(
                type="string", computed=True, description="The provider display name."
            ),
            "provider_type": Attribute(
                type="string", computed=True, description="The Nango provider."
            ),
            "updated_at": Attribute(
                type="string", computed=True, description="Last time it was updated"
            ),
            "credentials": credentials_schema(computed=True),
        }
        return Schema(
            description="All integrations configured in the Nango environment.",
            attributes={
                "integrations": Attribute(type="list_object", computed=True, attributes=item),
            },
        )

    async def read(self) -> DataSourceResponse[list[Integration]]:
        resp: DataSourceResponse[list[Integration]] = DataSourceResponse()
        client = self._require_client(resp.diagnostics)
        if client is None:
            return resp

        try:
            listed = await client.get("/integrations")
            integrations = list_from_wire(listed.body)
        except NangoError as exc:
            report_error(resp.diagnostics, "Unable to Read Integrations", exc)
            return resp

        logger.debug("Read %d integrations", len(integrations))
        resp.state = integrations
        return resp

"""Nango provider bootstrap.

Usage::

    provider = NangoProvider(version="1.2.0")
    configured = provider.configure({"environment_key": "..."})
    if configured.diagnostics.has_error():
        ...
    resource = provider.resources()[0]()
    resource.configure(configured.client)
    response = await resource.create(plan)
    await provider.aclose()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import httpx

from nango_provider.client import NangoClient
from nango_provider.config import ENV_ENVIRONMENT_KEY, ENV_HOST, resolve_config
from nango_provider.diagnostics import Diagnostics
from nango_provider.errors import ConfigError, MissingEnvironmentKey
from nango_provider.framework import Attribute, DataSource, Resource, Schema
from nango_provider.integration_data_source import IntegrationDataSource
from nango_provider.integration_resource import IntegrationResource

logger = logging.getLogger(__name__)

TYPE_NAME = "nango"


@dataclass
class ConfigureResponse:
    """Outcome of :meth:`NangoProvider.configure`.

    ``client`` is handed unchanged to every resource and data source.
    """

    client: NangoClient | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class NangoProvider:
    """Entry point the orchestration host instantiates once per run.

    ``version`` is the release version, ``"dev"`` for local builds and
    ``"test"`` under the test suite.
    """

    def __init__(
        self,
        version: str = "dev",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.version = version
        self._transport = transport
        self._env = env
        self._clients: list[NangoClient] = []

    def metadata(self) -> dict[str, str]:
        return {"type_name": TYPE_NAME, "version": self.version}

    def schema(self) -> Schema:
        return Schema(
            attributes={
                "environment_key": Attribute(
                    type="string",
                    required=True,
                    sensitive=True,
                    description=(
                        "Secret key of the Nango environment. Can also be set via the "
                        f"`{ENV_ENVIRONMENT_KEY}` environment variable."
                    ),
                ),
                "host": Attribute(
                    type="string",
                    optional=True,
                    description=(
                        "The base URL for the Nango API. Defaults to `https://api.nango.dev`. "
                        f"Can also be set via the `{ENV_HOST}` environment variable."
                    ),
                ),
            },
        )

    def configure(self, config: Mapping[str, Any] | None = None) -> ConfigureResponse:
        """Build the shared API client from provider configuration."""
        resp = ConfigureResponse()
        try:
            cfg = resolve_config(config, env=self._env)
        except MissingEnvironmentKey as exc:
            resp.diagnostics.add_error("Unable to find environment key", str(exc))
            return resp
        except ConfigError as exc:
            resp.diagnostics.add_error("Invalid Provider Configuration", str(exc))
            return resp

        logger.debug("Configuring Nango provider %s: %r", self.version, cfg)
        resp.client = NangoClient(
            cfg.host,
            cfg.environment_key,
            max_retries=cfg.max_retries,
            min_wait=cfg.min_wait,
            max_wait=cfg.max_wait,
            timeout=cfg.timeout,
            log_bodies=cfg.log_bodies,
            transport=self._transport,
        )
        self._clients.append(resp.client)
        return resp

    async def aclose(self) -> None:
        """Close every client handed out by :meth:`configure`."""
        clients, self._clients = self._clients, []
        for client in clients:
            await client.aclose()

    def resources(self) -> list[Callable[[], Resource]]:
        return [IntegrationResource]

    def data_sources(self) -> list[Callable[[], DataSource]]:
        return [IntegrationDataSource]

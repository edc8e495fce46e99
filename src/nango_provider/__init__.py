"""Nango provider — declarative management of Nango integrations.

Usage:
    from nango_provider import NangoProvider, Integration, IntegrationCredentials

    provider = NangoProvider()
    client = provider.configure({"environment_key": "..."}).client
    resource = IntegrationResource()
    resource.configure(client)
    response = await resource.create(Integration(...))
"""

from nango_provider.client import ApiResponse, NangoClient
from nango_provider.config import ProviderConfig, load_config_file, resolve_config
from nango_provider.diagnostics import Diagnostic, Diagnostics
from nango_provider.errors import (
    ApiError,
    ConfigError,
    DecodeError,
    MappingError,
    MissingEnvironmentKey,
    NangoError,
    TransportError,
)
from nango_provider.framework import DataSource, DataSourceResponse, Resource, ResourceResponse
from nango_provider.integration_data_source import IntegrationDataSource
from nango_provider.integration_resource import IntegrationResource
from nango_provider.models import Integration, IntegrationCredentials
from nango_provider.provider import NangoProvider

__all__ = [
    "ApiResponse",
    "NangoClient",
    "ProviderConfig",
    "load_config_file",
    "resolve_config",
    "Diagnostic",
    "Diagnostics",
    "ApiError",
    "ConfigError",
    "DecodeError",
    "MappingError",
    "MissingEnvironmentKey",
    "NangoError",
    "TransportError",
    "DataSource",
    "DataSourceResponse",
    "Resource",
    "ResourceResponse",
    "IntegrationDataSource",
    "IntegrationResource",
    "Integration",
    "IntegrationCredentials",
    "NangoProvider",
]
__version__ = "0.1.0"

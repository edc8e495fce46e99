"""Provider configuration.

Values are resolved in this order: explicit configuration (from the host
or a YAML file), then environment variables, then defaults::

    environment_key   NANGO_ENVIRONMENT_KEY   (required)
    host              NANGO_HOST              https://api.nango.dev
    log_bodies        NANGO_LOG_HTTP_BODIES   false

Retry and timeout settings have no environment variable; set them in
the YAML file when the defaults do not fit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from nango_provider.client import DEFAULT_HOST
from nango_provider.errors import ConfigError, MissingEnvironmentKey
from nango_provider.transport import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_WAIT,
    DEFAULT_MIN_WAIT,
    DEFAULT_TIMEOUT,
)

ENV_ENVIRONMENT_KEY = "NANGO_ENVIRONMENT_KEY"
ENV_HOST = "NANGO_HOST"
ENV_LOG_BODIES = "NANGO_LOG_HTTP_BODIES"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ProviderConfig:
    environment_key: str
    host: str = DEFAULT_HOST
    max_retries: int = DEFAULT_MAX_RETRIES
    min_wait: float = DEFAULT_MIN_WAIT
    max_wait: float = DEFAULT_MAX_WAIT
    timeout: float = DEFAULT_TIMEOUT
    log_bodies: bool = False

    def __repr__(self) -> str:
        # environment_key stays out of reprs and tracebacks
        return (
            f"ProviderConfig(host={self.host!r}, max_retries={self.max_retries}, "
            f"min_wait={self.min_wait}, max_wait={self.max_wait}, "
            f"timeout={self.timeout}, log_bodies={self.log_bodies})"
        )


def _number(raw: Mapping[str, Any], key: str, cast: type, default: Any) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    try:
        result = cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a {cast.__name__}, got {value!r}") from exc
    if result < 0:
        raise ConfigError(f"{key} must not be negative, got {value!r}")
    return result


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def resolve_config(
    raw: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> ProviderConfig:
    """Merge explicit values with the environment.

    Raises :class:`ConfigError` when no environment key can be found or a
    numeric setting is malformed.
    """
    raw = raw or {}
    env = os.environ if env is None else env

    environment_key = raw.get("environment_key") or env.get(ENV_ENVIRONMENT_KEY, "")
    if not environment_key:
        raise MissingEnvironmentKey(
            "Expected environment_key to be set in the provider configuration "
            f"or the {ENV_ENVIRONMENT_KEY} environment variable, but it was not."
        )

    host = raw.get("host") or env.get(ENV_HOST) or DEFAULT_HOST
    host = str(host).rstrip("/")
    if not host:
        raise ConfigError(f"host must not be empty (got {raw.get('host')!r})")

    log_bodies = raw.get("log_bodies")
    if log_bodies is None:
        log_bodies = env.get(ENV_LOG_BODIES, "")

    return ProviderConfig(
        environment_key=str(environment_key),
        host=host,
        max_retries=_number(raw, "max_retries", int, DEFAULT_MAX_RETRIES),
        min_wait=_number(raw, "min_wait", float, DEFAULT_MIN_WAIT),
        max_wait=_number(raw, "max_wait", float, DEFAULT_MAX_WAIT),
        timeout=_number(raw, "timeout", float, DEFAULT_TIMEOUT),
        log_bodies=_flag(log_bodies),
    )


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML provider configuration file.

    The file is a flat mapping of the keys accepted by :func:`resolve_config`,
    optionally nested under a top-level ``provider:`` key.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    provider = data.get("provider", data)
    if not isinstance(provider, dict):
        raise ConfigError(f"'provider' in {path} must be a mapping")
    return provider

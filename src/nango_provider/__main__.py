"""Operator entry point for inspecting and removing Nango integrations.

Usage::

    python -m nango_provider [--config provider.yaml] list
    python -m nango_provider show <unique_key> [--show-secrets]
    python -m nango_provider delete <unique_key>

The environment key comes from ``--config`` or ``NANGO_ENVIRONMENT_KEY``.
Results are printed as JSON on stdout, diagnostics on stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from nango_provider.client import NangoClient
from nango_provider.config import load_config_file
from nango_provider.diagnostics import Diagnostics
from nango_provider.errors import ConfigError
from nango_provider.integration_data_source import IntegrationDataSource
from nango_provider.integration_resource import IntegrationResource
from nango_provider.provider import NangoProvider
from nango_provider.redactor import SecretRedactor

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="nango-provider", description="Inspect Nango integrations")
    p.add_argument("--config", default=None, help="YAML provider config file")
    p.add_argument("-v", "--verbose", action="store_true", help="Log HTTP traffic")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all integrations")

    show = sub.add_parser("show", help="Show one integration")
    show.add_argument("unique_key")
    show.add_argument("--show-secrets", action="store_true")

    delete = sub.add_parser("delete", help="Delete one integration")
    delete.add_argument("unique_key")
    return p.parse_args(argv)


def _print_diagnostics(diags: Diagnostics) -> None:
    for diag in diags:
        print(str(diag), file=sys.stderr)


async def _run(args: argparse.Namespace, client: NangoClient) -> tuple[Any, Diagnostics]:
    if args.command == "list":
        source = IntegrationDataSource()
        source.configure(client)
        listed = await source.read()
        items = [i.to_dict() for i in listed.state or []]
        return items, listed.diagnostics

    resource = IntegrationResource()
    resource.configure(client)
    imported = await resource.import_state(args.unique_key)
    if imported.diagnostics.has_error():
        return None, imported.diagnostics

    if args.command == "show":
        read = await resource.read(imported.state)
        if read.state is None:
            return None, read.diagnostics
        result = read.state.to_dict()
        if not args.show_secrets:
            result = SecretRedactor().redact_obj(result)
        return result, read.diagnostics

    # delete
    deleted = await resource.delete(imported.state)
    if deleted.diagnostics.has_error():
        return None, deleted.diagnostics
    return {"deleted": args.unique_key}, deleted.diagnostics


def main(argv: list[str] | None = None, provider: NangoProvider | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="  %(message)s",
    )

    raw: dict[str, Any] = {}
    if args.config:
        try:
            raw = load_config_file(args.config)
        except ConfigError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    configured = (provider or NangoProvider()).configure(raw)
    if configured.diagnostics.has_error() or configured.client is None:
        _print_diagnostics(configured.diagnostics)
        return 1

    async def _main() -> tuple[Any, Diagnostics]:
        async with configured.client as client:
            return await _run(args, client)

    result, diags = asyncio.run(_main())
    _print_diagnostics(diags)
    if diags.has_error():
        return 1
    if result is not None:
        print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""``filestack-gate`` command-line entry point.

Subcommands:

* ``file-url HANDLE``       : signed retrieval URL for a file
* ``policy``                : print a signed policy
* ``auth-header``           : print the REST ``Authorization`` header
* ``transform-url SEG...``  : build a processing URL
* ``docinfo URL``           : fetch document page count and dimensions
* ``page URL``              : render and store one page of a document
* ``remove HANDLE``         : delete a file
* ``asset-url OWNER COLLECTION ASSET``: presigned S3 URL for an asset

Exit codes: 0 success, 1 configuration error, 2 usage error, 3 upstream
or malformed response error.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx

from filestack_gate.client import FilestackClient, MalformedResponseError
from filestack_gate.config import ConfigError, FilestackConfig
from filestack_gate.logging import configure_logging
from filestack_gate.policy import AccessPolicy, build_policy
from filestack_gate.signing import auth_header
from filestack_gate.transform import build_transform_url


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_USAGE = 2
EXIT_UPSTREAM = 3


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_segment(value: str) -> str | dict[str, Any]:
    """Parse a transform-url segment: a JSON object or a literal string."""
    if value.startswith("{"):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise argparse.ArgumentTypeError(f"invalid JSON task: {e}") from e
        if not isinstance(parsed, dict):
            raise argparse.ArgumentTypeError("task must be a JSON object")
        return parsed
    return value


# ── Commands ────────────────────────────────────────────────────────


def cmd_file_url(config: FilestackConfig, args: argparse.Namespace) -> int:
    with FilestackClient(config) as client:
        print(client.file_url(args.handle))
    return EXIT_OK


def cmd_policy(config: FilestackConfig, args: argparse.Namespace) -> int:
    try:
        policy = AccessPolicy(
            capabilities=tuple(args.call),
            expiry=args.expiry,
            url=args.url,
            handle=args.handle,
        )
    except ValueError as e:
        print(f"filestack-gate: {e}", file=sys.stderr)
        return EXIT_USAGE

    security = build_policy(config.app_secret, policy)
    if not security.is_authorized:
        logger.warning("No app secret configured; policy is not signed")
    _print_json(security.query_params())
    return EXIT_OK


def cmd_auth_header(config: FilestackConfig, args: argparse.Namespace) -> int:
    header = auth_header(config.app_secret)
    if header is None:
        logger.warning("No app secret configured; no header to print")
        return EXIT_CONFIG
    print(f"{header.name}: {header.value}")
    return EXIT_OK


def cmd_transform_url(
    config: FilestackConfig, args: argparse.Namespace
) -> int:
    print(build_transform_url(config.api_key, *args.segments))
    return EXIT_OK


def cmd_docinfo(config: FilestackConfig, args: argparse.Namespace) -> int:
    with FilestackClient(config) as client:
        _print_json(client.document_info(args.url).to_dict())
    return EXIT_OK


def cmd_page(config: FilestackConfig, args: argparse.Namespace) -> int:
    with FilestackClient(config) as client:
        page = client.generate_document_page(
            args.url, page=args.page, base_path=args.base_path
        )
    _print_json(page.to_dict())
    return EXIT_OK


def cmd_remove(config: FilestackConfig, args: argparse.Namespace) -> int:
    with FilestackClient(config) as client:
        print(client.remove(args.handle))
    return EXIT_OK


def cmd_asset_url(config: FilestackConfig, args: argparse.Namespace) -> int:
    with FilestackClient(config) as client:
        print(client.asset_url(args.owner, args.collection, args.asset))
    return EXIT_OK


# ── CLI plumbing ────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filestack-gate",
        description="Signed URLs and calls for the Filestack API",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help=(
            "Path to config.yaml"
            " (default: ~/.config/filestack-gate/config.yaml)"
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("file-url", help="Signed retrieval URL for a file")
    p.add_argument("handle")
    p.set_defaults(handler=cmd_file_url)

    p = sub.add_parser("policy", help="Print a signed policy")
    p.add_argument(
        "--call",
        action="append",
        required=True,
        help="Allowed call (repeatable), e.g. read, store, convert, remove",
    )
    scope = p.add_mutually_exclusive_group()
    scope.add_argument("--url", help="Scope the policy to a URL")
    scope.add_argument("--handle", help="Scope the policy to a file handle")
    p.add_argument(
        "--expiry", type=int, default=None, help="Expiry in epoch ms"
    )
    p.set_defaults(handler=cmd_policy)

    p = sub.add_parser("auth-header", help="Print the REST auth header")
    p.set_defaults(handler=cmd_auth_header)

    p = sub.add_parser("transform-url", help="Build a processing URL")
    p.add_argument(
        "segments",
        nargs="+",
        type=_parse_segment,
        help="Literal segment or JSON task object",
    )
    p.set_defaults(handler=cmd_transform_url)

    p = sub.add_parser("docinfo", help="Fetch document metadata")
    p.add_argument("url")
    p.set_defaults(handler=cmd_docinfo)

    p = sub.add_parser("page", help="Render and store a document page")
    p.add_argument("url")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--base-path", default=None)
    p.set_defaults(handler=cmd_page)

    p = sub.add_parser("remove", help="Delete a file")
    p.add_argument("handle")
    p.set_defaults(handler=cmd_remove)

    p = sub.add_parser("asset-url", help="Presigned S3 URL for an asset")
    p.add_argument("owner")
    p.add_argument("collection")
    p.add_argument("asset")
    p.set_defaults(handler=cmd_asset_url)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code.
    """
    args = _build_parser().parse_args(argv)

    configure_logging(logging.DEBUG if args.debug else logging.WARNING)

    try:
        config = FilestackConfig.from_yaml(config_path=args.config)
        return args.handler(config, args)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG
    except MalformedResponseError as e:
        logger.error("%s", e)
        return EXIT_UPSTREAM
    except httpx.HTTPError as e:
        logger.error("Request failed: %s", e)
        return EXIT_UPSTREAM


def cli() -> None:
    """Entry point for the ``filestack-gate`` console script."""
    sys.exit(main())

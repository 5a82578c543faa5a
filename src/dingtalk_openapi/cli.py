"""Command-line interface for the DingTalk Open API client."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from . import __version__
from .api import DingTalkClient, DingTalkError, normalize_url
from .core import DingTalkSettings, get_logger, setup_logging

logger = get_logger("cli")
console = Console()


def load_settings(args: argparse.Namespace) -> DingTalkSettings:
    """Load settings from ``--config`` or, when omitted, the environment."""
    if args.config:
        return DingTalkSettings.from_yaml(Path(args.config))
    return DingTalkSettings.from_env()


def _run_with_client(args: argparse.Namespace, action) -> int:
    try:
        settings = load_settings(args)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]Error loading configuration:[/] {escape(str(e))}")
        return 1

    if args.debug:
        settings.logging.level = "DEBUG"
    setup_logging(settings.logging)

    async def runner() -> None:
        async with DingTalkClient(settings.client) as client:
            await action(client)

    try:
        asyncio.run(runner())
        return 0
    except DingTalkError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        return 1
    except Exception as e:
        logger.error("Request failed: %s", e, exc_info=True)
        return 1


def cmd_token(args: argparse.Namespace) -> int:
    """Print a valid access token."""

    async def action(client: DingTalkClient) -> None:
        print(await client.get_access_token())

    return _run_with_client(args, action)


def cmd_ticket(args: argparse.Namespace) -> int:
    """Print a valid ticket of the requested type."""

    async def action(client: DingTalkClient) -> None:
        print(await client.get_jsapi_ticket(args.type))

    return _run_with_client(args, action)


def cmd_jsapi_config(args: argparse.Namespace) -> int:
    """Print the signed JSAPI config for a page URL."""

    async def action(client: DingTalkClient) -> None:
        config = await client.get_jsapi_config(args.url)
        console.print_json(data=config.to_dict())

    return _run_with_client(args, action)


def cmd_normalize_url(args: argparse.Namespace) -> int:
    """Print a URL as it is placed in the JSAPI signature input."""
    print(normalize_url(args.url))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="dingtalk-openapi",
        description="DingTalk Open API client - tokens, tickets and JSAPI signing",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c",
        "--config",
        default=None,
        help="YAML settings file (defaults to DINGTALK_* environment variables)",
    )
    common.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("token", parents=[common], help="Print a valid access token")

    ticket_parser = subparsers.add_parser(
        "ticket", parents=[common], help="Print a valid JSAPI ticket"
    )
    ticket_parser.add_argument("-t", "--type", default="jsapi", help="Ticket type")

    jsapi_parser = subparsers.add_parser(
        "jsapi-config", parents=[common], help="Print the signed JSAPI config for a page"
    )
    jsapi_parser.add_argument("url", help="Full URL of the page")

    normalize_parser = subparsers.add_parser(
        "normalize-url", help="Print the URL used in the JSAPI signature"
    )
    normalize_parser.add_argument("url", help="URL to normalise")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Optional sequence of CLI arguments (without the program name).

    Returns:
        Process exit code. 0 for success.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        raise SystemExit(0)

    handlers = {
        "token": cmd_token,
        "ticket": cmd_ticket,
        "jsapi-config": cmd_jsapi_config,
        "normalize-url": cmd_normalize_url,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

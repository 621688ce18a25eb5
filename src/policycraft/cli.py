"""Command-line entry point for rendering, listing and previewing policies."""

import argparse
import logging
import sys

from rich.console import Console

from policycraft.activity import ActivityLog
from policycraft.catalog import load_lookups, load_policies
from policycraft.config import LOG_LEVELS, Settings, load_settings
from policycraft.errors import PolicyDocumentError
from policycraft.listing import PolicyListing
from policycraft.models import Lookups
from policycraft.renderer import render

logger = logging.getLogger(__name__)

DEFAULT_LOOKUPS = "lookups.yaml"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="policycraft",
        description="policycraft: ABAC policy authoring tools",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file with a 'policycraft' section",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (overrides the settings file)",
    )
    parser.add_argument(
        "--lookups",
        default=None,
        help=f"Path to lookup tables YAML (default: {DEFAULT_LOOKUPS} if present)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    render_cmd = commands.add_parser("render", help="Print each policy as a sentence")
    render_cmd.add_argument("policies", help="Path to a policies YAML file")

    list_cmd = commands.add_parser("list", help="Show policies in a table")
    list_cmd.add_argument("policies", help="Path to a policies YAML file")

    serve_cmd = commands.add_parser("serve", help="Run the preview server")
    serve_cmd.add_argument("--host", default=None, help="Bind address")
    serve_cmd.add_argument("--port", type=int, default=None, help="Listen port")

    return parser.parse_args(argv)


def _load_lookups(path: str | None) -> Lookups:
    """Load lookups from an explicit path, or the default file if present."""
    if path is not None:
        return load_lookups(path)
    try:
        return load_lookups(DEFAULT_LOOKUPS)
    except FileNotFoundError:
        logger.debug("No %s found, rendering with raw identifiers", DEFAULT_LOOKUPS)
        return Lookups()


def _run_server(args: argparse.Namespace, settings: Settings, lookups: Lookups) -> None:
    """Start the preview server and block until interrupted."""
    import uvicorn

    from policycraft.server import create_app

    app = create_app(
        lookups, ActivityLog(), settings.summary_length, settings.topology
    )
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


def main(argv: list[str] | None = None) -> int:
    """Run the policycraft CLI."""
    args = _parse_args(argv)
    settings = load_settings(args.config)
    if args.log_level:
        settings.log_level = args.log_level
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    console = Console()
    lookups = _load_lookups(args.lookups)

    if args.command == "serve":
        _run_server(args, settings, lookups)
        return 0

    try:
        policies = load_policies(args.policies)
    except PolicyDocumentError as exc:
        console.print(f"[bold red]Invalid policy document:[/bold red] {exc}")
        return 1

    if args.command == "render":
        for policy in policies:
            console.print(
                render(policy, lookups), markup=False, highlight=False, soft_wrap=True
            )
    else:
        console.print(PolicyListing(policies, lookups, settings.summary_length))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Argument parser configuration for the xeet CLI"""

import argparse

from xeet import __version__

DEFAULT_COMMAND = "compose"


## Command Setup Functions

def setup_compose_command(subparsers) -> None:
    """Setup the interactive composer command."""

    subparsers.add_parser(
        "compose",
        help="Open the interactive composer (default)",
        description="Write and post to X.com from the terminal"
    )

def setup_auth_command(subparsers) -> None:
    """Setup the credential setup command."""

    subparsers.add_parser(
        "auth",
        help="Set up X.com API credentials",
        description="Authorize xeet with PIN-based OAuth or enter keys manually"
    )

def setup_version_command(subparsers) -> None:
    """Setup the version command."""

    version_parser = subparsers.add_parser(
        "version",
        help="Show version information",
    )
    version_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        dest="details",
        help="Include build and environment details"
    )


## Main Parser Setup

def setup_argument_parser() -> argparse.ArgumentParser:
    """Setup the main argument parser for the xeet CLI."""

    parser = argparse.ArgumentParser(
        prog="xeet",
        description="Post to X.com from your terminal",
        epilog="Run 'xeet auth' once, then 'xeet' to start posting."
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"xeet {__version__}",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Use an alternate settings file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging on the console"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Command to execute (default: compose)"
    )

    setup_compose_command(subparsers)
    setup_auth_command(subparsers)
    setup_version_command(subparsers)

    parser.set_defaults(command=DEFAULT_COMMAND)

    return parser

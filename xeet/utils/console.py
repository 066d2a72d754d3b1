"""Centralised console management module"""

from io import StringIO
from typing import Optional

from rich.console import Console
from rich.markup import escape

_console: Optional[Console] = None


def get_console() -> Console:
    """Get the shared Console instance"""
    global _console

    if _console is None:
        _console = Console()

    return _console


def get_buffer_console(width: int = 80) -> tuple[Console, StringIO]:
    """Get a Console that renders ANSI output into a buffer"""
    buffer = StringIO()

    console = Console(
        file=buffer,
        force_terminal=True,
        color_system="truecolor",
        width=width,
        legacy_windows=False,
    )

    return console, buffer


## Convenience Print Functions

def print_success(message: str, console: Optional[Console] = None) -> None:
    """Print a success message to the console"""
    output_console = console or get_console()
    output_console.print(f"[green]{escape(message)}[/]")


def print_error(message: str, console: Optional[Console] = None) -> None:
    """Print an error message to the console"""
    output_console = console or get_console()
    output_console.print(f"[red]{escape(message)}[/]")


def print_warning(message: str, console: Optional[Console] = None) -> None:
    """Print a warning message to the console"""
    output_console = console or get_console()
    output_console.print(f"[yellow]{escape(message)}[/]")


def print_status(message: str, console: Optional[Console] = None) -> None:
    """Print a status message to the console"""
    output_console = console or get_console()
    output_console.print(f"[cyan]{escape(message)}[/]")


def print_info(message: str, console: Optional[Console] = None) -> None:
    """Print an info message to the console"""
    output_console = console or get_console()
    output_console.print(message)

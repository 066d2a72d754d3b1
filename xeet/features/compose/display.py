"""Compose display: renders composer snapshots with Rich."""

from typing import Optional

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from xeet.utils.config_manager import UIConfig
from xeet.utils.console import get_buffer_console

from .state import ComposerSnapshot, Mode

BANNER = """\
██╗  ██╗███████╗███████╗████████╗
╚██╗██╔╝██╔════╝██╔════╝╚══██╔══╝
 ╚███╔╝ █████╗  █████╗     ██║
 ██╔██╗ ██╔══╝  ██╔══╝     ██║
██╔╝ ██╗███████╗███████╗   ██║
╚═╝  ╚═╝╚══════╝╚══════╝   ╚═╝"""

CURSOR = "|"
MEDIA_MARKER = "[image1.png]"

IDLE_HINT = "Enter to post • Alt+Enter newline • Ctrl+V paste • Ctrl+C quit"
POSTED_HINT = "Press any key for a new post, Ctrl+C to quit"
FAILED_HINT = "Press any key to start over, Ctrl+C to quit"


class ComposeDisplay:
    """Turns a ComposerSnapshot into terminal output."""

    def __init__(self, ui_config: Optional[UIConfig] = None):
        self.ui = ui_config or UIConfig()

    def build(self, snapshot: ComposerSnapshot) -> RenderableType:
        parts = []
        if self.ui.show_banner:
            parts.append(Text(BANNER + "\n", style=f"bold {self.ui.accent_color}"))

        parts.append(Panel(
            self._body(snapshot),
            box=box.ROUNDED,
            border_style=self.ui.accent_color,
            padding=(1, 2),
            width=self.ui.width,
        ))
        return Group(*parts)

    def render(self, snapshot: ComposerSnapshot) -> str:
        """Render to an ANSI string (for prompt_toolkit)."""
        console, buffer = get_buffer_console(width=max(self.ui.width, 40) + 2)
        console.print(self.build(snapshot))
        return buffer.getvalue()

    def _title(self, title: str) -> Text:
        return Text(title, style=f"bold {self.ui.accent_color}")

    def _body(self, snapshot: ComposerSnapshot) -> Text:
        if snapshot.mode is Mode.POSTED:
            return Text.assemble(self._title("Posted!"), "\n\n", POSTED_HINT)

        if snapshot.mode is Mode.POSTING:
            return Text.assemble(self._title("Posting..."), "\n\n", snapshot.text)

        if snapshot.mode is Mode.FAILED:
            return Text.assemble(
                self._title("Error"), "\n\n",
                (snapshot.error or "Post failed", "red"), "\n\n",
                FAILED_HINT,
            )

        return self._editor(snapshot)

    def _editor(self, snapshot: ComposerSnapshot) -> Text:
        text = snapshot.text
        body = Text.assemble(
            text[:snapshot.cursor],
            (CURSOR, f"bold {self.ui.accent_color}"),
            text[snapshot.cursor:],
        )

        if snapshot.has_media:
            body.append("\n" + MEDIA_MARKER, style="magenta")

        counter_style = "red" if snapshot.length >= snapshot.max_length else "dim"
        body.append("\n\n")
        body.append(f"{snapshot.length}/{snapshot.max_length}", style=counter_style)
        body.append(f" • {IDLE_HINT}", style="dim")
        return body

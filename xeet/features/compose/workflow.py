"""Interactive composer: prompt-toolkit application around the ComposerLoop."""

import asyncio
from pathlib import Path
from typing import Optional

from prompt_toolkit.application import Application
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl

from xeet.core.api_client import PostSubmitter
from xeet.core.clipboard import Clipboard
from xeet.core.models import ClipboardText
from xeet.core.rate_limiter import TokenBucket
from xeet.security.credential_store import CredentialStore
from xeet.utils.config_manager import ConfigManager
from xeet.utils.logging import async_log_call, get_log_manager, get_logger

from .display import ComposeDisplay
from .loop import ComposerLoop
from .state import ClipboardRead, ComposerModel, ComposerSnapshot, Key, KeyPressed

logger = get_logger(__name__)


class ComposerApp:
    """Binds terminal keys to composer events and redraws on every change."""

    def __init__(self, loop: ComposerLoop, display: Optional[ComposeDisplay] = None):
        self.loop = loop
        self.display = display or ComposeDisplay()
        self._rendered = self.display.render(loop.model.snapshot())
        loop.on_change = self._on_change

        self.application = Application(
            layout=Layout(Window(FormattedTextControl(self._get_text), wrap_lines=True)),
            key_bindings=self._create_key_bindings(),
            full_screen=False,
            mouse_support=False,
        )

    def _get_text(self) -> ANSI:
        return ANSI(self._rendered)

    def _on_change(self, snapshot: ComposerSnapshot) -> None:
        self._rendered = self.display.render(snapshot)
        self.application.invalidate()

    def _key(self, key: Key, char: str = "") -> None:
        self.loop.post(KeyPressed(key, char))

    def _create_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("c-c")
        def _(event):
            self._key(Key.QUIT)

        @kb.add("enter")
        def _(event):
            self._key(Key.SUBMIT)

        # Soft newline: Alt+Enter, or Ctrl+J where the terminal eats Alt
        @kb.add("escape", "enter")
        @kb.add("c-j")
        def _(event):
            self._key(Key.NEWLINE)

        @kb.add("c-v")
        def _(event):
            self._key(Key.PASTE)

        @kb.add("backspace")
        def _(event):
            self._key(Key.BACKSPACE)

        @kb.add("left")
        def _(event):
            self._key(Key.LEFT)

        @kb.add("right")
        def _(event):
            self._key(Key.RIGHT)

        @kb.add(Keys.BracketedPaste)
        def _(event):
            text = event.data.replace("\r\n", "\n").replace("\r", "\n")
            self.loop.post(ClipboardRead(ClipboardText(text)))

        @kb.add(Keys.Any)
        def _(event):
            if len(event.data) == 1 and event.data.isprintable():
                self._key(Key.CHARACTER, event.data)

        return kb

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if self.application.is_running:
            self.application.exit()

    async def run(self) -> ComposerModel:
        """Run until the user quits."""
        loop_task = asyncio.create_task(self.loop.run())
        loop_task.add_done_callback(self._on_loop_done)

        with get_log_manager().console_suspended():
            await self.application.run_async()

        if not loop_task.done():
            loop_task.cancel()
            return self.loop.model

        return loop_task.result()


## Factory function


@async_log_call
async def compose_post(config: Optional[ConfigManager] = None) -> ComposerModel:
    """Open the interactive composer.

    Builds the process-wide rate limiter and credential store from the
    application config and runs until the user quits.
    """
    config = config or ConfigManager()
    app_config = config.config

    store = CredentialStore(
        Path(app_config.storage.credentials_path),
        Path(app_config.storage.key_path),
    )
    submitter = PostSubmitter(store, TokenBucket(), app_config.api)
    loop = ComposerLoop(submitter, Clipboard().read)

    app = ComposerApp(loop, ComposeDisplay(app_config.ui))
    model = await app.run()

    logger.info(f"Composer closed in state {model.state.mode.value}")
    return model

"""Routes CLI commands to feature modules."""

import platform
import sys
from typing import Any, Callable, Dict, Optional

from rich.console import Console

from xeet import __version__
from xeet.features.auth import setup_credentials
from xeet.features.compose import compose_post
from xeet.utils.config_manager import ConfigManager
from xeet.utils.console import get_console
from xeet.utils.errors import error_context
from xeet.utils.logging import async_log_call, get_logger

logger = get_logger(__name__)


class CommandRouter:
    """Routes commands to appropriate feature workflows."""

    def __init__(self, config: Optional[ConfigManager] = None, console: Optional[Console] = None):
        self.config = config
        self.console = console or get_console()

    @async_log_call
    async def route(self, command: str, args: Optional[Dict[str, Any]] = None) -> bool:
        """Route command to feature.

        Args:
            command: Command name
            args: Parsed arguments dictionary

        Returns:
            True if command executed successfully

        Raises:
            ValueError: If command is unknown
        """
        if args is None:
            args = {}

        if not isinstance(command, str):
            raise TypeError("First argument to route() must be a command string")
        if not isinstance(args, dict):
            raise TypeError("Second argument to route() must be a dict")

        handler = self.get_available_commands().get(command)
        if not handler:
            raise ValueError(f"Unknown command: {command}")

        with error_context(f"Command '{command}' failed"):
            return await handler(args)

    def get_available_commands(self) -> Dict[str, Callable]:
        return {
            'compose': self._handle_compose,
            'auth': self._handle_auth,
            'version': self._handle_version,
        }

    async def _handle_compose(self, args: Dict[str, Any]) -> bool:
        """Route to compose feature."""
        await compose_post(self.config)
        return True

    async def _handle_auth(self, args: Dict[str, Any]) -> bool:
        """Route to credential setup."""
        return await setup_credentials(self.config, console=self.console)

    async def _handle_version(self, args: Dict[str, Any]) -> bool:
        self.console.print(f"xeet {__version__}")

        if args.get('details'):
            self.console.print(f"Python {sys.version.split()[0]}")
            self.console.print(f"Platform {platform.system()} {platform.machine()}")
            if self.config is not None:
                self.console.print(f"Config {self.config.path}")

        return True

"""Main CLI entry point - simplified to use router."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from xeet.utils.config_manager import ConfigManager
from xeet.utils.console import get_console
from xeet.utils.errors import ConfigurationError, FileSystemError, format_error_message
from xeet.utils.logging import async_log_call, get_log_manager, get_logger

from .cli_parser import setup_argument_parser
from .router import CommandRouter

logger = get_logger(__name__)


def _args_to_dict(args) -> Dict[str, Any]:
    """Convert argparse Namespace to dictionary."""
    result = {}
    for key, value in vars(args).items():
        if key != "command" and value is not None:
            result[key] = value
    return result


@async_log_call
async def dispatch_command(args, config: ConfigManager, console: Console) -> int:
    """Dispatch command via router.

    Returns:
        Exit code (0 = success, 1 = error)
    """
    command = args.command

    try:
        router = CommandRouter(config, console)
        success = await router.route(command, _args_to_dict(args))

        return 0 if success else 1

    except ValueError as e:
        logger.error(f"Invalid command: {e}")
        console.print(f"[red]Error: {e}[/red]")
        return 1

    except Exception as e:
        logger.error(f"Command failed: {e}")
        console.print(f"[red]Error: {format_error_message(e)}[/red]")
        return 1


def _load_config(config_path: Optional[str]) -> ConfigManager:
    config = ConfigManager(Path(config_path).expanduser() if config_path else None)

    log_manager = get_log_manager()
    log_manager.set_file_level(config.config.logging.log_level)
    log_manager.set_console_level(config.config.logging.console_level)

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code
    """
    console = get_console()

    try:
        parser = setup_argument_parser()
        args = parser.parse_args(argv)

        try:
            config = _load_config(args.config)
        except (ConfigurationError, FileSystemError, ValueError) as e:
            logger.error(f"Configuration error: {e}")
            console.print(f"[red]Configuration error: {e}[/red]")
            return 1

        if args.verbose:
            get_log_manager().set_console_level("DEBUG")

        return asyncio.run(dispatch_command(args, config, console))

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130  # Standard SIGINT exit code

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        console.print(f"[red]Fatal error: {e}[/red]")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

"""Logging utility for the xeet application"""

import json
import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

from .paths import LOGS_DIR

_LOG_DIR: Optional[Path] = None


def _get_log_dir() -> Path:
    """Get log directory, creating it on first access."""

    from .errors import FileSystemError

    global _LOG_DIR

    if _LOG_DIR is None:
        _LOG_DIR = LOGS_DIR
        try:
            _LOG_DIR.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            raise FileSystemError(f"Failed to create log directory: {_LOG_DIR}") from e

    return _LOG_DIR


## Custom JSON Formatter


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "event_type"):
            log_entry["event_type"] = record.event_type

        return json.dumps(log_entry)


## Log Masking


class SensitiveDataMasker:
    """Utility to mask sensitive data in log messages."""

    PATTERNS = {
        "oauth_signature": re.compile(
            r'(oauth_signature="?)([^",\s]+)', re.IGNORECASE
        ),
        "authorization": re.compile(
            r'(authorization["\']?\s*[:=]\s*["\']?)([^"\'}\n]+)', re.IGNORECASE
        ),
        "token": re.compile(
            r'(token["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE
        ),
        "api_key": re.compile(
            r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE
        ),
        "secret": re.compile(
            r'(secret["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE
        ),
    }

    SENSITIVE_FIELDS = {
        "secret",
        "token",
        "api_key",
        "api_secret",
        "apikey",
        "authorization",
        "access_token",
        "access_token_secret",
        "oauth_token",
        "oauth_token_secret",
        "oauth_verifier",
    }

    MASK_STRATEGIES = {
        "full": lambda x: "[REDACTED]",
        "partial": lambda x: x[:3] + "*" * (len(x) - 6) + x[-3:]
        if len(x) > 6
        else "[REDACTED]",
    }

    def __init__(self, strategy: str = "full"):
        """Initialize masker with specified strategy."""

        self.strategy = strategy
        self.mask_func = self.MASK_STRATEGIES[strategy]

    def mask_string(self, text: str) -> str:
        """Mask sensitive data in a string message."""

        if not text:
            return text

        masked = text
        for pattern in self.PATTERNS.values():
            masked = pattern.sub(
                lambda m: m.group(1) + self.mask_func(m.group(2)), masked
            )

        return masked

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive data in a dictionary."""

        if not isinstance(data, dict):
            return data

        masked = {}

        for key, value in data.items():
            if str(key).lower() in self.SENSITIVE_FIELDS:
                masked[key] = self.mask_func(str(value))
            elif isinstance(value, dict):
                masked[key] = self.mask_dict(value)
            elif isinstance(value, str):
                masked[key] = self.mask_string(value)
            else:
                masked[key] = value

        return masked


class SensitiveDataFilter(logging.Filter):
    """Logging filter to mask sensitive data in log records."""

    def __init__(self, strategy: str = "full"):
        """Initialize filter with specified masking strategy."""

        super().__init__()
        self.masker = SensitiveDataMasker(strategy)

    def filter(self, record) -> bool:
        """Filter log record to mask sensitive data."""

        if isinstance(record.msg, str):
            record.msg = self.masker.mask_string(record.msg)

        for key, value in list(record.__dict__.items()):
            if key.lower() in self.masker.SENSITIVE_FIELDS:
                setattr(record, key, self.masker.mask_func(str(value)))
            elif isinstance(value, dict):
                setattr(record, key, self.masker.mask_dict(value))

        return True


## Main Log Manager


class LogManager:
    """Manages logging configuration and provides logger instances."""

    def __init__(self, log_level: str = "INFO", console_level: str = "WARNING"):
        self.log_level = getattr(logging, log_level.upper())
        self.root_logger = logging.getLogger("xeet")
        self.root_logger.setLevel(logging.DEBUG)
        self.root_logger.propagate = False
        self.console_handler: Optional[logging.Handler] = None
        self.app_handler: Optional[logging.Handler] = None
        self._setup_handlers(getattr(logging, console_level.upper()))

    def _setup_handlers(self, console_level: int) -> None:
        """Setup console and file handlers with sensitive data filtering."""

        from .errors import FileSystemError, XeetError

        sensitive_filter = SensitiveDataFilter(strategy="full")

        try:
            self.root_logger.handlers.clear()

            console_handler = RichHandler(
                show_time=True,
                show_path=False,
                markup=False,
                rich_tracebacks=True,
            )
            console_handler.setLevel(console_level)
            console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
            console_handler.addFilter(sensitive_filter)

            log_dir = _get_log_dir()
            try:
                app_handler = RotatingFileHandler(
                    log_dir / "app.log",
                    maxBytes=5_242_880,
                    backupCount=5,
                    encoding="utf-8",
                )
                event_handler = RotatingFileHandler(
                    log_dir / "events.log",
                    maxBytes=2_048_000,
                    backupCount=3,
                    encoding="utf-8",
                )

            except IOError as e:
                raise FileSystemError(f"Failed to create log file handler: {str(e)}") from e

            app_handler.setLevel(self.log_level)
            app_handler.setFormatter(JSONFormatter())
            app_handler.addFilter(sensitive_filter)

            event_handler.setLevel(logging.INFO)
            event_handler.setFormatter(JSONFormatter())
            event_handler.addFilter(lambda record: hasattr(record, "event_type"))
            event_handler.addFilter(sensitive_filter)

            self.root_logger.addHandler(console_handler)
            self.root_logger.addHandler(app_handler)
            self.root_logger.addHandler(event_handler)
            self.console_handler = console_handler
            self.app_handler = app_handler

        except XeetError:
            raise

        except Exception as e:
            raise FileSystemError(f"Failed to setup logging handlers: {str(e)}") from e

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger under the xeet namespace."""

        if not name or name == "xeet":
            return self.root_logger
        if name.startswith("xeet."):
            return logging.getLogger(name)
        return logging.getLogger(f"xeet.{name}")

    def set_console_level(self, level: str) -> None:
        """Set console logging level at runtime (e.g. for --verbose)."""

        try:
            if self.console_handler is not None:
                self.console_handler.setLevel(getattr(logging, level.upper()))
        except AttributeError as e:
            raise ValueError(f"Invalid logging level: {level}") from e

    def set_file_level(self, level: str) -> None:
        """Set the app.log level at runtime."""

        try:
            self.log_level = getattr(logging, level.upper())
        except AttributeError as e:
            raise ValueError(f"Invalid logging level: {level}") from e

        if self.app_handler is not None:
            self.app_handler.setLevel(self.log_level)

    @contextmanager
    def console_suspended(self):
        """Detach the console handler while a full-screen UI owns the terminal."""

        handler = self.console_handler
        if handler is not None:
            self.root_logger.removeHandler(handler)
        try:
            yield
        finally:
            if handler is not None:
                self.root_logger.addHandler(handler)

    def log_event(self, event_type: str, message: str, level: str = "INFO", **extra):
        """Log an event with specific type and extra context."""

        extra_dict = {"event_type": event_type}
        extra_dict.update(extra)

        try:
            log_level = getattr(logging, level.upper())
        except AttributeError as e:
            raise ValueError(f"Invalid logging level: {level}") from e

        self.root_logger.log(log_level, message, extra=extra_dict)


## Decorators for Logging


def log_call(func):
    """Decorator to log function calls with duration."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("xeet")
        func_name = f"{func.__module__}.{func.__qualname__}"
        logger.debug(f"-> Entering {func_name}")
        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Exiting {func_name} (Duration: {duration:.3f}s)")
            return result

        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.exception(f"<- Error in {func_name} after {duration:.3f}s: {e}")
            raise

    return wrapper


def async_log_call(func):
    """Async decorator to log function calls with duration."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        logger = logging.getLogger("xeet")
        func_name = f"{func.__module__}.{func.__qualname__}"
        logger.debug(f"-> Entering {func_name} (async)")
        start_time = datetime.now()

        try:
            result = await func(*args, **kwargs)
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Exiting {func_name} (Duration: {duration:.3f}s)")
            return result

        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.exception(f"<- Error in {func_name} after {duration:.3f}s: {e}")
            raise

    return wrapper


## Module-level LogManager Instance and Helper Functions

_log_manager: Optional[LogManager] = None


def init_logging(log_level: str = "INFO", console_level: str = "WARNING") -> LogManager:
    """Initialize logging system and return LogManager instance."""

    global _log_manager

    if _log_manager is None:
        _log_manager = LogManager(log_level, console_level)

    return _log_manager


def get_log_manager() -> LogManager:
    """Return the LogManager, initialising it with defaults on first use."""

    return init_logging()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""

    return get_log_manager().get_logger(name)


def log_event(event_type: str, message, **extra):
    """Log an event with specific type and extra context (module-level wrapper)."""

    if isinstance(message, dict):
        extra.update(message)
        message = f"Event: {event_type}"

    return get_log_manager().log_event(event_type, message, **extra)

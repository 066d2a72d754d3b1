"""Configuration manager for persistent settings stored as JSON."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from .errors import (
    ConfigurationError,
    FileSystemError,
    InvalidConfigError,
    MissingConfigError,
    XeetError,
)
from .logging import get_logger, log_call
from .paths import CONFIG_PATH, CREDENTIALS_PATH, MASTER_KEY_PATH

logger = get_logger(__name__)


class ApiConfig(BaseModel):
    """Pydantic model for API endpoints."""

    messages_url: str = "https://api.x.com/2/tweets"
    media_upload_url: str = "https://upload.twitter.com/1.1/media/upload.json"
    identity_url: str = "https://api.x.com/2/users/me"
    request_token_url: str = "https://api.twitter.com/oauth/request_token"
    authorize_url: str = "https://api.twitter.com/oauth/authorize"
    access_token_url: str = "https://api.twitter.com/oauth/access_token"


class StorageConfig(BaseModel):
    """Pydantic model for credential storage locations."""

    credentials_path: str = str(CREDENTIALS_PATH)
    key_path: str = str(MASTER_KEY_PATH)


class UIConfig(BaseModel):
    """Pydantic model for UI settings."""

    accent_color: str = "#3b82f6"
    show_banner: bool = True
    width: int = 60


class LoggingConfig(BaseModel):
    """Pydantic model for logging settings."""

    log_level: str = "INFO"
    console_level: str = "WARNING"


class AppConfig(BaseModel):
    """Pydantic model for overall application configuration."""

    version: str = "0.1.0"
    api: ApiConfig = Field(default_factory=ApiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages persistent application configuration."""

    _instance = None
    _initialized = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None):
        if not ConfigManager._initialized:
            self.path = Path(config_path) if config_path else CONFIG_PATH
            self.config = self._load_or_create_config()
            logger.info(f"Configuration loaded from {self.path}")
            ConfigManager._initialized = True

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the singleton so the next call reloads from disk."""
        cls._instance = None
        cls._initialized = False

    def _load_or_create_config(self) -> AppConfig:
        """Load configuration from file or create default if not present."""

        from pydantic import ValidationError

        if not self.path.exists():
            logger.info("No config file found, creating default configuration.")
            config = AppConfig()
            self._save_config(config)
            return config

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = AppConfig(**data)
            logger.debug("Configuration successfully loaded and validated.")
            return config

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise InvalidConfigError(f"Configuration file is not valid JSON: {str(e)}") from e
        except (TypeError, ValidationError) as e:
            logger.error(f"Failed to validate config file: {e}")
            raise InvalidConfigError(f"Configuration data does not match expected schema: {str(e)}") from e
        except OSError as e:
            raise FileSystemError(f"Failed to read configuration file: {self.path}") from e

    def _save_config(self, config: Optional[AppConfig] = None):
        """Save the current configuration to file."""

        config = config or self.config

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(
                    config.model_dump(),
                    f,
                    indent=2,
                    ensure_ascii=False
                )
            logger.debug("Configuration successfully saved.")
        except OSError as e:
            raise FileSystemError(f"Failed to write configuration file: {str(e)}") from e

    @log_call
    def get_config(self, key_path: str, default: Any = None) -> Any:
        """Read a configuration value using dot-separated key path."""

        obj: Any = self.config
        for key in key_path.split("."):
            if not hasattr(obj, key):
                return default
            obj = getattr(obj, key)
        return obj

    @log_call
    def set_config(self, key_path: str, value: Any, persist: bool = True):
        """Set a configuration value using dot-separated key path."""

        try:
            keys = key_path.split(".")
            obj = self.config

            for key in keys[:-1]:
                if not hasattr(obj, key):
                    raise MissingConfigError(f"Configuration path '{key_path}' is invalid: '{key}' not found")
                obj = getattr(obj, key)

            if not hasattr(obj, keys[-1]):
                raise MissingConfigError(f"Configuration key '{keys[-1]}' does not exist in path '{key_path}'")

            setattr(obj, keys[-1], value)

            if persist:
                self._save_config()

            logger.info(f"Config key '{key_path}' updated and saved.")

        except XeetError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to set configuration key '{key_path}': {str(e)}") from e

    @log_call
    def reset_to_defaults(self):
        """Reset configuration to default values."""

        logger.warning("Resetting configuration to default values.")
        self.config = AppConfig()
        self._save_config()
        logger.info("Configuration reset to default values.")

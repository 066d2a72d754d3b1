"""
Tests for configuration management

Tests cover:
- Defaults and persistence
- Dot-path reads and writes
- Invalid configuration files
"""
import json
import os

import pytest

from xeet.utils.config_manager import AppConfig, ConfigManager
from xeet.utils.errors import InvalidConfigError, MissingConfigError


class TestConfigManagerInitialization:
    """Tests for ConfigManager initialization"""

    def test_creates_default_file(self, config_manager):
        assert config_manager.path.exists()
        data = json.loads(config_manager.path.read_text())
        assert data["api"]["messages_url"] == "https://api.x.com/2/tweets"

    def test_singleton(self, config_manager):
        assert ConfigManager() is config_manager

    def test_default_endpoints(self, config_manager):
        api = config_manager.config.api
        assert api.media_upload_url == "https://upload.twitter.com/1.1/media/upload.json"
        assert api.identity_url == "https://api.x.com/2/users/me"

    def test_default_storage_under_home(self, config_manager):
        home = os.environ["XEET_HOME"]
        assert config_manager.config.storage.credentials_path.startswith(home)
        assert config_manager.config.storage.key_path.startswith(home)


class TestConfigAccess:
    """Tests for reading and writing values"""

    def test_get_config(self, config_manager):
        assert config_manager.get_config("ui.width") == 60
        assert config_manager.get_config("ui.missing", "fallback") == "fallback"

    def test_set_config_persists(self, config_manager, tmp_path):
        config_manager.set_config("ui.show_banner", False)

        ConfigManager.reset_instance()
        reloaded = ConfigManager(tmp_path / "config.json")
        assert reloaded.config.ui.show_banner is False

    def test_set_unknown_key(self, config_manager):
        with pytest.raises(MissingConfigError):
            config_manager.set_config("ui.nonexistent", 1)

    def test_reset_to_defaults(self, config_manager):
        config_manager.set_config("ui.width", 80)
        config_manager.reset_to_defaults()
        assert config_manager.config == AppConfig()


class TestInvalidConfig:
    """Tests for unreadable configuration files"""

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{oops")
        ConfigManager.reset_instance()
        try:
            with pytest.raises(InvalidConfigError):
                ConfigManager(path)
        finally:
            ConfigManager.reset_instance()

    def test_schema_mismatch(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"ui": {"width": "wide"}}))
        ConfigManager.reset_instance()
        try:
            with pytest.raises(InvalidConfigError):
                ConfigManager(path)
        finally:
            ConfigManager.reset_instance()

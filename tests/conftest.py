"""
Shared test fixtures and configuration for pytest
"""
import os
import tempfile

# Point the app at a throwaway home before any xeet module computes its paths
os.environ["XEET_HOME"] = tempfile.mkdtemp(prefix="xeet-test-")

from pathlib import Path

import pytest

from xeet.security.credential_store import CredentialStore, Credentials
from xeet.utils.config_manager import ConfigManager


class FakeClock:
    """Manually advanced monotonic clock; sleeping advances it."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Fake clock whose sleep() records delays instead of waiting"""
    return FakeClock()


@pytest.fixture
def credentials():
    """Fully populated test credentials"""
    return Credentials(
        api_key="consumer-key",
        api_secret="consumer-secret",
        access_token="123-access-token",
        access_token_secret="access-secret",
        user_id="123",
        username="tester",
    )


@pytest.fixture
def store(tmp_path: Path):
    """Credential store rooted in a temporary directory"""
    return CredentialStore(
        tmp_path / "secrets" / "credentials.json",
        tmp_path / "secrets" / ".master.key",
    )


@pytest.fixture
def saved_store(store, credentials):
    """Credential store with the test credentials already saved"""
    store.save(credentials)
    return store


@pytest.fixture
def config_manager(tmp_path: Path):
    """Fresh ConfigManager singleton backed by a temporary file"""
    ConfigManager.reset_instance()
    manager = ConfigManager(tmp_path / "config.json")
    yield manager
    ConfigManager.reset_instance()

"""Centralized path definitions for the xeet application.

This module provides a single source of truth for all application paths.
Set ``XEET_HOME`` to relocate everything (used by the test suite).
"""

import os
from pathlib import Path

# Base application directory
XEET_DIR = Path(os.environ.get("XEET_HOME", Path.home() / ".xeet"))

# Subdirectories
LOGS_DIR = XEET_DIR / "logs"
SECRETS_DIR = XEET_DIR / "secrets"

# Specific files
CONFIG_PATH = XEET_DIR / "config.json"
MASTER_KEY_PATH = SECRETS_DIR / ".master.key"
CREDENTIALS_PATH = SECRETS_DIR / "credentials.json"

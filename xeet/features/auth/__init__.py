"""Credential setup feature module.

Public API:
    setup_credentials() - Main entry point for `xeet auth`
    AuthWorkflow - Full workflow orchestration class (for testing/customization)
"""

from .input import AuthInputManager
from .workflow import AuthWorkflow, setup_credentials

__all__ = [
    "setup_credentials",
    "AuthWorkflow",
    "AuthInputManager",
]

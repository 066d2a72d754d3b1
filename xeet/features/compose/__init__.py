"""Post composition feature module.

This module provides the interactive composer:
- Pure state machine for the edit buffer and posting status
- Single-queue event loop with background submission
- Rich display output inside a prompt-toolkit application

Public API:
    compose_post() - Main entry point for interactive composition
    ComposerModel - State machine (for testing/customization)
    ComposerLoop - Event loop driving the state machine

Example:
    >>> from xeet.features.compose import compose_post
    >>> model = await compose_post()
"""

from .display import ComposeDisplay
from .loop import ComposerLoop
from .state import ComposerModel, ComposeBuffer, Key, KeyPressed, Mode
from .workflow import ComposerApp, compose_post

__all__ = [
    "compose_post",  # Main entry point
    "ComposerApp",  # Terminal application
    "ComposerLoop",  # Event loop
    "ComposerModel",  # State machine
    "ComposeBuffer",
    "ComposeDisplay",  # Display components
    "Key",
    "KeyPressed",
    "Mode",
]

"""Terminal composer for posting to X."""

__version__ = "0.1.0"

"""Slack workspace membership notifier."""

from .version import __version__

__all__ = ["__version__"]

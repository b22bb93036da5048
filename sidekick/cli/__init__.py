"""Command-line interface for Sidekick."""

from .main import main

__all__ = ["main"]

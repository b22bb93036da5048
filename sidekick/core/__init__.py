"""Core components for the Sidekick application."""

# Import interfaces for easier access
from .interfaces import (
    IAudioInput,
    ITranscriptionService,
)

__all__ = ["IAudioInput", "ITranscriptionService"]

"""Defines the core interfaces for the Sidekick application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable

import numpy as np

from ..note_types import AnalysisResult


class IAudioInput(ABC):
    """Interface for sources of raw PCM frames."""

    @abstractmethod
    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        """Start delivering audio blocks to the callback."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering audio."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if audio is running."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the delivered audio."""
        pass


class ITranscriptionService(ABC):
    """Interface for the remote AI service that turns audio clips into notes."""

    @abstractmethod
    def analyze_clip(self, audio: bytes) -> AnalysisResult:
        """Estimate tempo and key of a clip."""
        pass

    @abstractmethod
    def audio_to_midi(self, audio: bytes, mode: str = "melody") -> AnalysisResult:
        """Transcribe a clip to notes; mode is 'melody' or 'rhythm'."""
        pass

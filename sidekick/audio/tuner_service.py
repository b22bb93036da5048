"""Tuner service that turns streamed audio blocks into note readings."""

from __future__ import annotations
import dataclasses
from typing import Callable, Optional

import numpy as np

from ..logger import get_logger
from ..note_types import PitchReading
from ..note_utils import frequency_to_note
from ..detection.pitch_estimator import PitchEstimator
from ..core.events import EventEmitter, TunerEventType
from ..core.interfaces import IAudioInput

logger = get_logger(__name__)


class TunerService:
    """Feeds fixed-size frames from an audio source to the pitch estimator.

    Incoming blocks of any length are appended to a rolling buffer holding the
    most recent ``frame_size`` samples. Once the buffer is full, every block
    triggers an analysis of the latest frame, and a detected pitch is mapped
    to its nearest note and emitted to listeners.
    """

    def __init__(
        self,
        estimator: Optional[PitchEstimator] = None,
        audio_input: Optional[IAudioInput] = None,
        frame_size: int = 2048,
        sample_rate: int = 44100,
    ) -> None:
        """Initialize the tuner service.

        Args:
            estimator: Pitch estimator, or None to create a default one
            audio_input: Source of audio blocks used by start(), optional
            frame_size: Analysis window length in samples
            sample_rate: Sample rate in Hz, overridden by the audio input's rate
        """
        if frame_size < 3:
            raise ValueError(f"frame_size must be at least 3, got {frame_size}")
        self._estimator = estimator or PitchEstimator()
        self._audio_input = audio_input
        self._frame_size = frame_size
        self._sample_rate = audio_input.sample_rate if audio_input else sample_rate
        self._buffer = np.zeros(0, dtype=np.float32)
        self._events = EventEmitter()
        self._last_reading: Optional[PitchReading] = None

    @property
    def frame_size(self) -> int:
        return self._frame_size

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def last_reading(self) -> Optional[PitchReading]:
        return self._last_reading

    def on_pitch(self, callback: Callable[[PitchReading], None]) -> None:
        """Register a callback for detected pitches."""
        self._events.on(TunerEventType.PITCH_DETECTED, callback)

    def on_silence(self, callback: Callable[[float], None]) -> None:
        """Register a callback for analysed frames with no pitch; receives the timestamp."""
        self._events.on(TunerEventType.SILENCE, callback)

    def analyze_frame(self, frame: np.ndarray, timestamp: float = 0.0) -> Optional[PitchReading]:
        """Analyse one complete frame and notify listeners."""
        reading = self._estimator.analyze(frame, self._sample_rate)
        if reading is None:
            self._last_reading = None
            self._events.emit(TunerEventType.SILENCE, timestamp)
            return None

        reading = dataclasses.replace(
            reading, note=frequency_to_note(reading.frequency), timestamp=timestamp
        )
        self._last_reading = reading
        logger.debug(f"[{timestamp:.2f}s] {reading.note} ({reading.frequency:.1f}Hz)")
        self._events.emit(TunerEventType.PITCH_DETECTED, reading)
        return reading

    def process_audio(self, audio_data: np.ndarray, timestamp: float) -> Optional[PitchReading]:
        """Add a block of samples and analyse the latest frame once one is available.

        Args:
            audio_data: Mono samples (any length)
            timestamp: Time of the block in seconds

        Returns:
            The reading for the latest frame, or None if silent or not enough audio yet
        """
        block = np.asarray(audio_data, dtype=np.float32).reshape(-1)
        self._buffer = np.concatenate((self._buffer, block))[-self._frame_size :]
        if self._buffer.size < self._frame_size:
            return None
        return self.analyze_frame(self._buffer, timestamp)

    def reset(self) -> None:
        """Drop buffered audio."""
        self._buffer = np.zeros(0, dtype=np.float32)
        self._last_reading = None

    def start(self, callback: Optional[Callable[[PitchReading], None]] = None) -> bool:
        """Start pulling audio from the configured input.

        Returns:
            True if the input started, False otherwise
        """
        if self._audio_input is None:
            raise RuntimeError("TunerService has no audio input to start")
        if callback is not None:
            self.on_pitch(callback)
        self._sample_rate = self._audio_input.sample_rate
        self.reset()
        started = self._audio_input.start(self.process_audio)
        # The input may have fallen back to another rate
        self._sample_rate = self._audio_input.sample_rate
        if not started:
            logger.error("Failed to start audio input")
        return bool(started)

    def stop(self) -> None:
        if self._audio_input is not None:
            self._audio_input.stop()
        logger.info("Tuner stopped")

    def is_running(self) -> bool:
        return self._audio_input is not None and self._audio_input.is_running()

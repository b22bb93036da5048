"""Autocorrelation pitch estimation for single audio frames."""

from __future__ import annotations

from typing import ClassVar, Optional, Sequence, Union

import numpy as np

from ..logger import get_logger
from ..note_types import PitchReading

logger = get_logger(__name__)

Frame = Union[np.ndarray, Sequence[float]]


def autocorrelate(buf: np.ndarray) -> np.ndarray:
    """Unnormalized autocorrelation for lags 0..len(buf)-1.

    ``c[lag] = sum(buf[j] * buf[j + lag])``. This is a direct O(n^2)
    computation: fine for 2048-sample frames, slow for much longer ones.
    """
    return np.correlate(buf, buf, mode="full")[buf.size - 1 :]


class PitchEstimator:
    """Estimates the fundamental frequency of a mono audio frame.

    The frame is gated on RMS level, trimmed to the region between the first
    and last samples above the trigger threshold, then autocorrelated. The
    strongest correlation peak after the initial descent from lag 0 gives the
    period, refined with a three-point parabolic fit.
    """

    DEFAULT_NOISE_FLOOR: ClassVar[float] = 0.01  # RMS below this is silence
    DEFAULT_TRIGGER_THRESHOLD: ClassVar[float] = 0.2  # Amplitude bounding the analysed region

    def __init__(
        self,
        noise_floor: float = DEFAULT_NOISE_FLOOR,
        trigger_threshold: float = DEFAULT_TRIGGER_THRESHOLD,
    ) -> None:
        """Initialize the estimator.

        Args:
            noise_floor: Minimum frame RMS for a pitch to be reported
            trigger_threshold: Absolute amplitude used to trim leading and trailing quiet samples
        """
        if noise_floor < 0 or trigger_threshold < 0:
            raise ValueError("Thresholds must be non-negative")
        self._noise_floor = noise_floor
        self._trigger_threshold = trigger_threshold

    @property
    def noise_floor(self) -> float:
        return self._noise_floor

    @property
    def trigger_threshold(self) -> float:
        return self._trigger_threshold

    def estimate(self, samples: Frame, sample_rate: int) -> Optional[float]:
        """Return the fundamental frequency in Hz, or None when no pitch is detected."""
        reading = self.analyze(samples, sample_rate)
        return reading.frequency if reading is not None else None

    def analyze(self, samples: Frame, sample_rate: int) -> Optional[PitchReading]:
        """Analyse one frame.

        Args:
            samples: 1-D sequence of samples in [-1.0, 1.0]
            sample_rate: Sample rate in Hz

        Returns:
            PitchReading with frequency, refined period and frame RMS, or None
            if the frame is too quiet or has no usable correlation peak

        Raises:
            ValueError: If the frame is not one-dimensional or the sample rate is not positive
        """
        buf = np.asarray(samples, dtype=np.float64)
        if buf.ndim != 1:
            raise ValueError(f"Expected a 1-D frame, got shape {buf.shape}")
        if isinstance(sample_rate, bool) or sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate!r}")
        if buf.size == 0:
            return None

        rms = float(np.sqrt(np.mean(buf**2)))
        if not np.isfinite(rms) or rms < self._noise_floor:
            logger.debug(f"Frame below noise floor (rms={rms:.4f})")
            return None

        trimmed = self._trim(buf)
        period = self._find_period(autocorrelate(trimmed))
        if period is None or period <= 0:
            return None

        frequency = sample_rate / period
        logger.debug(
            f"Pitch {frequency:.2f}Hz (period={period:.3f}, rms={rms:.4f}, "
            f"analysed {trimmed.size}/{buf.size} samples)"
        )
        return PitchReading(frequency=float(frequency), period=float(period), rms=rms)

    def _trim(self, buf: np.ndarray) -> np.ndarray:
        loud = np.flatnonzero(np.abs(buf) > self._trigger_threshold)
        if loud.size == 0:
            # Quiet but above the noise floor: analyse the whole frame
            return buf
        return buf[loud[0] : loud[-1] + 1]

    @staticmethod
    def _find_period(corr: np.ndarray) -> Optional[float]:
        last = corr.size - 1
        if last < 2:
            return None

        # Skip the descent from the zero-lag peak
        rising = np.flatnonzero(np.diff(corr) >= 0)
        if rising.size == 0:
            logger.debug("Correlation never rises; no periodicity found")
            return None
        start = int(rising[0])

        peak = start + int(np.argmax(corr[start:]))
        if peak == 0:
            return None

        period = float(peak)
        if peak < last:
            x1, x2, x3 = corr[peak - 1], corr[peak], corr[peak + 1]
            a = (x1 + x3 - 2 * x2) / 2
            b = (x3 - x1) / 2
            if a != 0:
                period = peak - b / (2 * a)
        return period

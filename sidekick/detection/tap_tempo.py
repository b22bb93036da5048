"""Tap tempo tracking and beat-length conversion."""

import math
from collections import deque
from typing import ClassVar, Deque, Optional

from ..logger import get_logger
from ..note_types import TempoEstimate

logger = get_logger(__name__)

MS_PER_MINUTE = 60000.0


class TapTempoTracker:
    """
    Averages the intervals between recent taps into a BPM value.

    Taps older than ``stale_after_ms`` relative to the newest tap are dropped,
    so the estimate follows the current tapping rather than an earlier session.
    Instances are not thread-safe; use one per session or lock around calls.
    """

    DEFAULT_STALE_AFTER_MS: ClassVar[float] = 3000.0

    def __init__(self, stale_after_ms: float = DEFAULT_STALE_AFTER_MS):
        if stale_after_ms <= 0:
            raise ValueError(f"stale_after_ms must be positive, got {stale_after_ms}")
        self._stale_after_ms = stale_after_ms
        self._taps: Deque[float] = deque()
        self._estimate: Optional[TempoEstimate] = None

    @property
    def taps(self):
        """Timestamps currently in the window, oldest first."""
        return list(self._taps)

    @property
    def estimate(self) -> Optional[TempoEstimate]:
        return self._estimate

    @property
    def bpm(self) -> Optional[int]:
        """Current BPM, or None while there is not enough data."""
        return self._estimate.bpm if self._estimate else None

    def record_tap(self, now: float) -> Optional[int]:
        """Record a tap at ``now`` (milliseconds) and return the updated BPM.

        Returns:
            The rounded average BPM, or None if fewer than two usable taps remain
        """
        if self._taps and now == self._taps[-1]:
            # Same-millisecond double tap adds no interval
            logger.debug(f"Duplicate tap at {now} ignored")
        else:
            self._taps.append(now)
        # Taps ahead of now come from a clock that stepped back
        self._taps = deque(t for t in self._taps if 0 <= now - t < self._stale_after_ms)

        self._estimate = self._compute()
        if self._estimate is not None:
            logger.debug(
                f"Tap {len(self._taps)}: {self._estimate.bpm} BPM "
                f"(mean interval {self._estimate.mean_interval_ms:.1f}ms)"
            )
        return self.bpm

    def reset(self) -> None:
        """Forget all taps."""
        self._taps.clear()
        self._estimate = None
        logger.debug("Tap tempo reset")

    def _compute(self) -> Optional[TempoEstimate]:
        if len(self._taps) < 2:
            return None
        taps = list(self._taps)
        intervals = [b - a for a, b in zip(taps, taps[1:])]
        mean_interval = sum(intervals) / len(intervals)
        if mean_interval <= 0:
            logger.warning(f"Degenerate tap sequence ignored: {taps}")
            return None
        return TempoEstimate(
            bpm=int(math.floor(MS_PER_MINUTE / mean_interval + 0.5)),
            mean_interval_ms=mean_interval,
            tap_count=len(taps),
        )


def _check_positive(value, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{what} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{what} must be positive and finite, got {value}")
    return value


def bpm_to_ms(bpm: float) -> float:
    """Length of one beat in milliseconds."""
    return MS_PER_MINUTE / _check_positive(bpm, "BPM")


def ms_to_bpm(ms: float) -> float:
    """Tempo whose beat lasts ``ms`` milliseconds."""
    return MS_PER_MINUTE / _check_positive(ms, "Beat length")

"""Pitch and tempo detection."""

from .pitch_estimator import PitchEstimator, autocorrelate
from .tap_tempo import TapTempoTracker, bpm_to_ms, ms_to_bpm

__all__ = ["PitchEstimator", "autocorrelate", "TapTempoTracker", "bpm_to_ms", "ms_to_bpm"]

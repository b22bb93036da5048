"""Type definitions for the Sidekick project."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class NoteLabel:
    """A frequency expressed as the nearest equal-tempered note."""

    pitch_class: str  # Sharp spelling, e.g. 'C#'
    octave: int  # Scientific pitch notation, A4 = 440 Hz
    cents: int  # Deviation from the nearest semitone, roughly -50..50
    midi_number: int  # 69 = A4

    @property
    def name(self) -> str:
        return f"{self.pitch_class}{self.octave}"

    def __str__(self):
        if self.cents == 0:
            return self.name
        return f"{self.name} {self.cents:+d}"


@dataclass(frozen=True)
class PitchReading:
    """A detected fundamental frequency and the frame statistics behind it."""

    frequency: float  # Hz, always > 0
    period: float  # Refined period in samples
    rms: float  # RMS amplitude of the analysed frame
    note: Optional[NoteLabel] = None
    timestamp: float = 0.0


@dataclass(frozen=True)
class TempoEstimate:
    """Averaged tempo from a window of taps."""

    bpm: int
    mean_interval_ms: float
    tap_count: int


@dataclass(frozen=True)
class MidiNote:
    """One note of a transcription, times in seconds from clip start."""

    pitch: int  # 0-127
    velocity: int  # 0-127
    start_time: float
    duration: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


@dataclass
class AnalysisResult:
    """What the AI transcription service returns for a clip."""

    bpm: Optional[float] = None
    key: Optional[str] = None
    notes: List[MidiNote] = field(default_factory=list)

"""Sidekick: a pocket musician's toolkit.

Pitch estimation, note mapping, tap tempo and MIDI file export.
"""

from .note_types import AnalysisResult, MidiNote, NoteLabel, PitchReading, TempoEstimate
from .note_utils import frequency_to_note, get_note_name, note_to_frequency
from .detection import PitchEstimator, TapTempoTracker, bpm_to_ms, ms_to_bpm
from .midi import MidiFileEncoder, encode_midi_file

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "MidiNote",
    "NoteLabel",
    "PitchReading",
    "TempoEstimate",
    "frequency_to_note",
    "get_note_name",
    "note_to_frequency",
    "PitchEstimator",
    "TapTempoTracker",
    "bpm_to_ms",
    "ms_to_bpm",
    "MidiFileEncoder",
    "encode_midi_file",
]

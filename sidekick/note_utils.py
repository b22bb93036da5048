"""Utility functions for working with musical notes and frequencies.

All conversions use twelve-tone equal temperament anchored at A4 = 440 Hz,
with MIDI numbering (69 = A4) as the common currency between names and Hz.
"""

import math
import re
from typing import Tuple

import numpy as np

from .logger import get_logger
from .note_types import NoteLabel

# Get logger for this module
logger = get_logger(__name__)

A4_FREQUENCY = 440.0
A4_MIDI_NUMBER = 69
MIN_MIDI_NUMBER = 0
MAX_MIDI_NUMBER = 127

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_NAMES = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

FLAT_TO_SHARP = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
}

NOTE_PATTERN = re.compile(r"^([A-Ga-g][#b]?)(-?[0-9]+)$")


def _check_frequency(freq) -> float:
    if isinstance(freq, bool) or not isinstance(freq, (int, float, np.number)):
        raise ValueError(f"Frequency must be a number, got {freq!r}")
    freq = float(freq)
    if not math.isfinite(freq) or freq <= 0:
        logger.warning(f"Rejected frequency value: {freq}")
        raise ValueError(f"Frequency must be positive and finite, got {freq}")
    return freq


def pitch_class_index(pitch_class: str) -> int:
    """Return the 0-11 index of a pitch class, accepting sharp or flat spelling.

    Raises:
        ValueError: If the name is not one of the twelve pitch classes
    """
    if not isinstance(pitch_class, str):
        raise ValueError(f"Pitch class must be a string, got {pitch_class!r}")
    name = pitch_class.strip()
    if name:
        name = name[0].upper() + name[1:]
    name = FLAT_TO_SHARP.get(name, name)
    if name not in NOTE_NAMES:
        logger.warning(f"Unknown pitch class: {pitch_class!r}")
        raise ValueError(f"Unknown pitch class: {pitch_class!r}")
    return NOTE_NAMES.index(name)


def midi_to_frequency(midi_number: int) -> float:
    """Frequency in Hz of an equal-tempered MIDI note number."""
    return A4_FREQUENCY * 2.0 ** ((midi_number - A4_MIDI_NUMBER) / 12.0)


def frequency_to_midi(freq: float) -> int:
    """Nearest MIDI note number to a frequency (may fall outside 0-127)."""
    freq = _check_frequency(freq)
    return int(round(12 * np.log2(freq / A4_FREQUENCY))) + A4_MIDI_NUMBER


def frequency_to_note(freq: float) -> NoteLabel:
    """Convert a frequency to the nearest note and its cents deviation.

    Args:
        freq: Frequency in Hz

    Returns:
        NoteLabel with sharp-spelled pitch class, SPN octave and cents
        (floored) relative to the nearest semitone

    Raises:
        ValueError: If freq is not a positive, finite number
    """
    freq = _check_frequency(freq)
    midi_number = frequency_to_midi(freq)
    cents = int(np.floor(1200 * np.log2(freq / midi_to_frequency(midi_number))))
    return NoteLabel(
        pitch_class=NOTE_NAMES[midi_number % 12],
        octave=(midi_number // 12) - 1,
        cents=cents,
        midi_number=midi_number,
    )


def note_to_midi(pitch_class: str, octave: int) -> int:
    """MIDI number of a (pitch class, octave) pair.

    Raises:
        ValueError: If the pitch class is unknown or the note is outside MIDI range 0-127
    """
    index = pitch_class_index(pitch_class)
    if isinstance(octave, bool) or not isinstance(octave, (int, np.integer)):
        raise ValueError(f"Octave must be an integer, got {octave!r}")
    midi_number = (int(octave) + 1) * 12 + index
    if not MIN_MIDI_NUMBER <= midi_number <= MAX_MIDI_NUMBER:
        logger.warning(f"Note out of range: {pitch_class}{octave}")
        raise ValueError(
            f"{pitch_class}{octave} is outside the MIDI note range "
            f"({MIN_MIDI_NUMBER}-{MAX_MIDI_NUMBER})"
        )
    return midi_number


def note_to_frequency(pitch_class: str, octave: int) -> float:
    """Convert a note to its equal-tempered frequency.

    Args:
        pitch_class: One of the twelve pitch classes ('A', 'C#', 'Bb', ...)
        octave: Octave in scientific pitch notation (A4 = 440 Hz)

    Returns:
        Frequency in Hz
    """
    return midi_to_frequency(note_to_midi(pitch_class, octave))


def parse_note_name(note_name: str) -> Tuple[str, int]:
    """Split an SPN note name such as 'C#4' or 'Bb-1' into (pitch class, octave).

    The pitch class is returned in sharp spelling.
    """
    match = NOTE_PATTERN.match(note_name.strip()) if isinstance(note_name, str) else None
    if not match:
        raise ValueError(f"Invalid note name: {note_name!r}")
    index = pitch_class_index(match.group(1))
    return NOTE_NAMES[index], int(match.group(2))


def get_note_name(freq: float, use_flats: bool = False) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4', 'Bb3')
    """
    label = frequency_to_note(freq)
    if use_flats:
        return f"{FLAT_NAMES[label.midi_number % 12]}{label.octave}"
    return label.name

"""Boundary for the remote AI transcription service.

The service itself is an external collaborator; this module only parses
what it returns and turns a result into a MIDI file.
"""

import json
import math
from typing import Any, Dict, List, Mapping, Optional

from ..logger import get_logger
from ..note_types import AnalysisResult, MidiNote
from ..midi.encoder import DEFAULT_BPM, MidiFileEncoder, to_midi_note

logger = get_logger(__name__)

# General MIDI percussion keys used in rhythm mode
DRUM_NOTES: Dict[str, int] = {
    "kick": 36,
    "snare": 38,
    "hihat": 42,
}


def _parse_bpm(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    # The service reports 0 when it could not tell
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def parse_analysis(payload: Mapping[str, Any]) -> AnalysisResult:
    """Build an AnalysisResult from the service's decoded JSON object.

    Raises:
        ValueError: If the payload is not an object or a note is malformed
    """
    if not isinstance(payload, Mapping):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")

    raw_notes = payload.get("notes") or []
    if not isinstance(raw_notes, list):
        raise ValueError("'notes' must be a list")
    notes = [to_midi_note(n) for n in raw_notes]

    key = payload.get("key")
    result = AnalysisResult(
        bpm=_parse_bpm(payload.get("bpm")),
        key=key if isinstance(key, str) and key else None,
        notes=notes,
    )
    logger.debug(f"Parsed analysis: bpm={result.bpm} key={result.key} notes={len(notes)}")
    return result


def parse_analysis_json(text: Optional[str]) -> AnalysisResult:
    """Parse the service's raw response text; empty text is an empty result."""
    if not text or not text.strip():
        return AnalysisResult()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Response is not valid JSON: {e}") from e
    return parse_analysis(payload)


def sketch_duration(notes: List[MidiNote]) -> float:
    """Clip length shown for a transcription: last note start plus two seconds."""
    if not notes:
        return 5.0
    return notes[-1].start_time + 2.0


def export_midi(result: AnalysisResult, encoder: Optional[MidiFileEncoder] = None) -> bytes:
    """Encode a transcription's notes at its tempo, or 120 BPM when unknown."""
    bpm = result.bpm if result.bpm is not None else DEFAULT_BPM
    return (encoder or MidiFileEncoder()).encode(result.notes, bpm)

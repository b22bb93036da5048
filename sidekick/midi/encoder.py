"""Standard MIDI File (format 0) encoding for transcribed notes."""

from __future__ import annotations

import math
import struct
from pathlib import Path
from typing import Any, ClassVar, Iterable, List, Mapping, Optional, Tuple, Union

from ..logger import get_logger
from ..note_types import MidiNote

logger = get_logger(__name__)

NoteInput = Union[MidiNote, Mapping[str, Any]]

NOTE_ON: int = 0x90
NOTE_OFF: int = 0x80
END_OF_TRACK: bytes = b"\xff\x2f\x00"
MAX_VLQ: int = 0x0FFFFFFF  # 2^28 - 1, four VLQ bytes
DEFAULT_BPM: float = 120.0


def encode_vlq(value: int) -> bytes:
    """Encode an integer as a MIDI variable-length quantity.

    Seven bits per byte, most significant group first, with the high bit set
    on every byte except the last.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"VLQ value must be an integer, got {value!r}")
    if not 0 <= value <= MAX_VLQ:
        raise ValueError(f"VLQ value out of range 0..{MAX_VLQ}: {value}")
    out = [value & 0x7F]
    value >>= 7
    while value:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(out))


def decode_vlq(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a variable-length quantity starting at ``offset``.

    Returns:
        (value, offset of the first byte after the quantity)
    """
    value = 0
    for i in range(4):
        if offset + i >= len(data):
            raise ValueError(f"Truncated VLQ at offset {offset}")
        byte = data[offset + i]
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, offset + i + 1
    raise ValueError(f"VLQ longer than 4 bytes at offset {offset}")


def _to_tick(seconds: float, seconds_per_tick: float) -> int:
    ticks = seconds / seconds_per_tick
    if not math.isfinite(ticks) or ticks + 0.5 > MAX_VLQ:
        raise ValueError(f"Time {seconds}s is beyond the last encodable tick ({MAX_VLQ})")
    return int(math.floor(ticks + 0.5))


def _field(note: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in note:
            return note[name]
    raise ValueError(f"Note is missing '{names[0]}': {dict(note)}")


def _check_int(value: Any, what: str) -> int:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 127:
        raise ValueError(f"{what} must be an integer in 0..127, got {value!r}")
    return value


def _check_time(value: Any, what: str, allow_zero: bool) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{what} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "positive"
        raise ValueError(f"{what} must be {bound} and finite, got {value}")
    return value


def to_midi_note(note: NoteInput) -> MidiNote:
    """Validate a note given as a MidiNote or as the AI service's JSON mapping.

    Raises:
        ValueError: If pitch/velocity fall outside 0-127, the start time is
            negative or the duration is not positive
    """
    if isinstance(note, MidiNote):
        pitch, velocity = note.pitch, note.velocity
        start, duration = note.start_time, note.duration
    elif isinstance(note, Mapping):
        pitch = _field(note, "note", "pitch")
        velocity = _field(note, "velocity")
        start = _field(note, "startTime", "start_time")
        duration = _field(note, "duration")
    else:
        raise ValueError(f"Unsupported note type: {type(note).__name__}")

    return MidiNote(
        pitch=_check_int(pitch, "Pitch"),
        velocity=_check_int(velocity, "Velocity"),
        start_time=_check_time(start, "Start time", allow_zero=True),
        duration=_check_time(duration, "Duration", allow_zero=False),
    )


class MidiFileEncoder:
    """Builds a single-track, format-0 Standard MIDI File from a note list."""

    HEADER_CHUNK_LENGTH: ClassVar[int] = 6
    FORMAT: ClassVar[int] = 0
    TRACK_COUNT: ClassVar[int] = 1

    def __init__(self, ticks_per_quarter: int = 480, channel: int = 0):
        if not 0 < ticks_per_quarter < 0x8000:
            raise ValueError(f"ticks_per_quarter must be in 1..32767, got {ticks_per_quarter}")
        if not 0 <= channel <= 15:
            raise ValueError(f"channel must be in 0..15, got {channel}")
        self.ticks_per_quarter = ticks_per_quarter
        self.channel = channel

    def timed_events(
        self, notes: Iterable[NoteInput], bpm: Optional[float] = None
    ) -> List[Tuple[int, int, int, int]]:
        """Absolute-tick (tick, status, pitch, velocity) events, sorted by tick.

        Each note contributes a note-on then a note-off; the sort is stable so
        events on the same tick keep that input order.
        """
        bpm = DEFAULT_BPM if bpm is None else bpm
        if isinstance(bpm, bool) or not isinstance(bpm, (int, float)) or not math.isfinite(bpm) or bpm <= 0:
            raise ValueError(f"BPM must be positive and finite, got {bpm!r}")
        validated = [to_midi_note(n) for n in notes]

        seconds_per_tick = (60.0 / bpm) / self.ticks_per_quarter
        events = []
        for note in validated:
            on_tick = _to_tick(note.start_time, seconds_per_tick)
            off_tick = _to_tick(note.end_time, seconds_per_tick)
            events.append((on_tick, NOTE_ON | self.channel, note.pitch, note.velocity))
            events.append((off_tick, NOTE_OFF | self.channel, note.pitch, 0))
        events.sort(key=lambda event: event[0])
        return events

    def encode_track(self, notes: Iterable[NoteInput], bpm: Optional[float] = None) -> bytes:
        """Track event stream, terminated by the end-of-track meta event."""
        track = bytearray()
        current = 0
        for tick, status, pitch, velocity in self.timed_events(notes, bpm):
            track += encode_vlq(tick - current)
            track += bytes((status, pitch, velocity))
            current = tick
        track += encode_vlq(0)
        track += END_OF_TRACK
        return bytes(track)

    def encode(self, notes: Iterable[NoteInput], bpm: Optional[float] = None) -> bytes:
        """Encode notes as a complete Standard MIDI File.

        Args:
            notes: Unordered notes (MidiNote or mappings)
            bpm: Tempo used to convert seconds to ticks, 120 if None

        Returns:
            The file contents: MThd header, MTrk header, track data
        """
        track = self.encode_track(notes, bpm)
        header = b"MThd" + struct.pack(
            ">IHHH", self.HEADER_CHUNK_LENGTH, self.FORMAT, self.TRACK_COUNT, self.ticks_per_quarter
        )
        data = header + b"MTrk" + struct.pack(">I", len(track)) + track
        logger.debug(f"Encoded MIDI file: {len(data)} bytes, track {len(track)} bytes")
        return data


def encode_midi_file(notes: Iterable[NoteInput], bpm: Optional[float] = None) -> bytes:
    """Encode notes with the default 480 ticks-per-quarter encoder."""
    return MidiFileEncoder().encode(notes, bpm)


def midi_filename(mode: str, sketch_id: str) -> str:
    return f"sidekick_{mode}_{sketch_id}.mid"


def write_midi_file(
    path: Union[str, Path],
    notes: Iterable[NoteInput],
    bpm: Optional[float] = None,
    encoder: Optional[MidiFileEncoder] = None,
) -> Path:
    """Encode notes and write them to ``path``, creating parent directories."""
    data = (encoder or MidiFileEncoder()).encode(notes, bpm)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info(f"Wrote {len(data)} bytes to {path}")
    return path


def read_track_events(data: bytes) -> List[Tuple[int, int, int, int]]:
    """Parse a file produced by MidiFileEncoder back into absolute-tick events.

    Only the subset this module writes is understood: one MThd, one MTrk,
    three-byte channel messages and the end-of-track meta event.
    """
    if data[:4] != b"MThd" or len(data) < 22:
        raise ValueError("Not a Standard MIDI File")
    if data[14:18] != b"MTrk":
        raise ValueError("Missing MTrk chunk")
    (length,) = struct.unpack(">I", data[18:22])
    track = data[22 : 22 + length]
    if len(track) != length:
        raise ValueError("Track chunk is truncated")

    events = []
    tick = 0
    offset = 0
    while offset < len(track):
        delta, offset = decode_vlq(track, offset)
        tick += delta
        if track[offset : offset + 3] == END_OF_TRACK:
            return events
        status, pitch, velocity = track[offset : offset + 3]
        events.append((tick, status, pitch, velocity))
        offset += 3
    raise ValueError("Track has no end-of-track event")

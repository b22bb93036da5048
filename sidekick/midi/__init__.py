"""MIDI file export."""

from .encoder import (
    MidiFileEncoder,
    decode_vlq,
    encode_midi_file,
    encode_vlq,
    read_track_events,
    write_midi_file,
)

__all__ = [
    "MidiFileEncoder",
    "decode_vlq",
    "encode_midi_file",
    "encode_vlq",
    "read_track_events",
    "write_midi_file",
]

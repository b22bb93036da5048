import struct
import tempfile
import unittest
from pathlib import Path

import mido

from sidekick.midi.encoder import (
    MAX_VLQ,
    MidiFileEncoder,
    decode_vlq,
    encode_midi_file,
    encode_vlq,
    midi_filename,
    read_track_events,
    write_midi_file,
)
from sidekick.note_types import MidiNote

HEADER = b"MThd\x00\x00\x00\x06\x00\x00\x00\x01\x01\xe0"


class TestVariableLengthQuantity(unittest.TestCase):
    KNOWN = {
        0: b"\x00",
        0x40: b"\x40",
        0x7F: b"\x7f",
        0x80: b"\x81\x00",
        480: b"\x83\x60",
        0x2000: b"\xc0\x00",
        0x3FFF: b"\xff\x7f",
        0x4000: b"\x81\x80\x00",
        0x1FFFFF: b"\xff\xff\x7f",
        0x200000: b"\x81\x80\x80\x00",
        MAX_VLQ: b"\xff\xff\xff\x7f",
    }

    def test_known_encodings(self):
        for value, encoded in self.KNOWN.items():
            self.assertEqual(encode_vlq(value), encoded, hex(value))
            self.assertEqual(decode_vlq(encoded), (value, len(encoded)))

    def test_round_trip_across_range(self):
        for value in (1, 127, 128, 1000, 16383, 16384, 123456, 2**21, 2**27 + 5, MAX_VLQ - 1):
            encoded = encode_vlq(value)
            self.assertEqual(decode_vlq(b"\x99" + encoded, 1), (value, len(encoded) + 1))

    def test_out_of_range(self):
        for bad in (-1, MAX_VLQ + 1, 1.5, True):
            with self.assertRaises(ValueError):
                encode_vlq(bad)

    def test_malformed_input(self):
        with self.assertRaises(ValueError):
            decode_vlq(b"\x81")
        with self.assertRaises(ValueError):
            decode_vlq(b"\x81\x81\x81\x81\x00")


class TestMidiFileEncoder(unittest.TestCase):
    def test_empty_note_list(self):
        data = encode_midi_file([], 120)
        self.assertEqual(data, HEADER + b"MTrk\x00\x00\x00\x04" + b"\x00\xff\x2f\x00")
        self.assertEqual(len(data), 26)
        self.assertEqual(read_track_events(data), [])

    def test_single_note(self):
        note = MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.5)
        data = encode_midi_file([note], 120)

        track = b"\x00\x90\x3c\x64" + b"\x83\x60\x80\x3c\x00" + b"\x00\xff\x2f\x00"
        self.assertEqual(data, HEADER + b"MTrk" + struct.pack(">I", len(track)) + track)
        self.assertEqual(
            read_track_events(data), [(0, 0x90, 60, 100), (480, 0x80, 60, 0)]
        )

    def test_default_tempo_is_120(self):
        note = MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.5)
        self.assertEqual(encode_midi_file([note]), encode_midi_file([note], 120))
        self.assertEqual(encode_midi_file([note], None), encode_midi_file([note], 120.0))

    def test_tempo_scales_ticks(self):
        note = MidiNote(pitch=60, velocity=100, start_time=1.0, duration=1.0)
        events = read_track_events(encode_midi_file([note], 60))
        self.assertEqual([tick for tick, *_ in events], [480, 960])

    def test_events_are_sorted(self):
        notes = [
            MidiNote(pitch=64, velocity=90, start_time=1.0, duration=0.5),
            MidiNote(pitch=60, velocity=80, start_time=0.0, duration=0.25),
        ]
        events = read_track_events(encode_midi_file(notes, 120))
        self.assertEqual(
            events,
            [
                (0, 0x90, 60, 80),
                (240, 0x80, 60, 0),
                (960, 0x90, 64, 90),
                (1440, 0x80, 64, 0),
            ],
        )

    def test_same_tick_events_keep_input_order(self):
        first = MidiNote(pitch=62, velocity=70, start_time=0.5, duration=0.5)
        second = MidiNote(pitch=60, velocity=70, start_time=0.0, duration=0.5)
        events = MidiFileEncoder().timed_events([first, second], 120)
        self.assertEqual(
            [(tick, status, pitch) for tick, status, pitch, _ in events],
            [(0, 0x90, 60), (480, 0x90, 62), (480, 0x80, 60), (960, 0x80, 62)],
        )
        # Same input, same bytes
        self.assertEqual(
            encode_midi_file([first, second], 120), encode_midi_file([first, second], 120)
        )

    def test_overlapping_notes(self):
        notes = [
            MidiNote(pitch=60, velocity=100, start_time=0.0, duration=2.0),
            MidiNote(pitch=64, velocity=100, start_time=0.5, duration=0.5),
        ]
        events = read_track_events(encode_midi_file(notes, 120))
        self.assertEqual(
            [(tick, pitch) for tick, _, pitch, _ in events],
            [(0, 60), (480, 64), (960, 64), (1920, 60)],
        )

    def test_track_length_field(self):
        notes = [MidiNote(pitch=p, velocity=64, start_time=p / 10, duration=0.1) for p in range(40, 60)]
        data = encode_midi_file(notes, 97.5)
        (length,) = struct.unpack(">I", data[18:22])
        self.assertEqual(length, len(data) - 22)
        self.assertTrue(data.endswith(b"\xff\x2f\x00"))

    def test_mapping_notes(self):
        payload = [{"note": 60, "velocity": 100, "startTime": 0, "duration": 0.5}]
        note = MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.5)
        self.assertEqual(encode_midi_file(payload), encode_midi_file([note]))

    def test_invalid_notes(self):
        bad_notes = [
            MidiNote(pitch=128, velocity=100, start_time=0.0, duration=0.5),
            MidiNote(pitch=60, velocity=-1, start_time=0.0, duration=0.5),
            MidiNote(pitch=60, velocity=100, start_time=-0.1, duration=0.5),
            MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.0),
            MidiNote(pitch=60, velocity=100, start_time=0.0, duration=-1.0),
            {"note": 60, "velocity": 100, "startTime": 0},
            {"note": "C4", "velocity": 100, "startTime": 0, "duration": 1},
            MidiNote(pitch=60, velocity=100, start_time=1e308, duration=1.0),
            MidiNote(pitch=60, velocity=100, start_time=300000.0, duration=1.0),
            {"note": 60, "velocity": 100, "startTime": 1e308, "duration": 1},
        ]
        for note in bad_notes:
            with self.assertRaises(ValueError, msg=repr(note)):
                encode_midi_file([note])

    def test_invalid_tempo(self):
        note = MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.5)
        for bad in (0, -120, float("inf")):
            with self.assertRaises(ValueError):
                encode_midi_file([note], bad)

    def test_custom_division(self):
        data = MidiFileEncoder(ticks_per_quarter=96).encode(
            [MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.5)], 120
        )
        self.assertEqual(data[12:14], b"\x00\x60")
        self.assertEqual(read_track_events(data)[-1][0], 96)


class TestMidiFileOutput(unittest.TestCase):
    def test_write_midi_file(self):
        notes = [MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.5)]
        with tempfile.TemporaryDirectory() as tmp:
            path = write_midi_file(Path(tmp) / "out" / midi_filename("melody", "abc"), notes, 120)
            self.assertEqual(path.name, "sidekick_melody_abc.mid")
            self.assertEqual(path.read_bytes(), encode_midi_file(notes, 120))

    def test_read_rejects_other_data(self):
        with self.assertRaises(ValueError):
            read_track_events(b"RIFF" + bytes(30))

    def test_file_reads_back_with_mido(self):
        notes = [
            MidiNote(pitch=64, velocity=90, start_time=0.5, duration=0.5),
            MidiNote(pitch=60, velocity=100, start_time=0.0, duration=0.5),
        ]
        with tempfile.TemporaryDirectory() as tmp:
            path = write_midi_file(Path(tmp) / "take.mid", notes, 120)
            mid = mido.MidiFile(str(path))

        self.assertEqual(mid.type, 0)
        self.assertEqual(mid.ticks_per_beat, 480)
        self.assertEqual(len(mid.tracks), 1)
        messages = [
            (msg.type, msg.note, msg.velocity, msg.time)
            for msg in mid.tracks[0]
            if not msg.is_meta
        ]
        self.assertEqual(
            messages,
            [
                ("note_on", 60, 100, 0),
                ("note_on", 64, 90, 480),
                ("note_off", 60, 0, 0),
                ("note_off", 64, 0, 480),
            ],
        )
        self.assertEqual(mid.tracks[0][-1].type, "end_of_track")

    def test_empty_file_reads_back_with_mido(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_midi_file(Path(tmp) / "empty.mid", [], 120)
            mid = mido.MidiFile(str(path))
        self.assertEqual([msg.type for msg in mid.tracks[0]], ["end_of_track"])


if __name__ == "__main__":
    unittest.main()

"""Main entry point for the Sidekick CLI."""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

from ..logger import get_logger
from ..logging_config import setup_logging
from ..note_types import PitchReading
from ..note_utils import frequency_to_note, get_note_name, note_to_frequency, parse_note_name
from ..detection.tap_tempo import TapTempoTracker, bpm_to_ms, ms_to_bpm
from ..midi.encoder import write_midi_file
from ..services.transcription import parse_analysis
from ..audio.wav_input import WavFileInput
from ..core.factory import ComponentFactory
from ..core.config import ConfigManager

logger = get_logger(__name__)


def _factory(args: argparse.Namespace) -> ComponentFactory:
    return ComponentFactory(ConfigManager(args.config_dir))


def cmd_hz_to_note(args: argparse.Namespace) -> int:
    label = frequency_to_note(args.frequency)
    name = get_note_name(args.frequency, use_flats=True) if args.flats else label.name
    cents = "" if label.cents == 0 else f" {label.cents:+d}"
    print(f"{name}{cents}")
    return 0


def cmd_note_to_hz(args: argparse.Namespace) -> int:
    pitch_class, octave = parse_note_name(args.note)
    print(f"{note_to_frequency(pitch_class, octave):.2f}")
    return 0


def cmd_bpm_to_ms(args: argparse.Namespace) -> int:
    print(f"{bpm_to_ms(args.bpm):.1f}")
    return 0


def cmd_ms_to_bpm(args: argparse.Namespace) -> int:
    print(f"{ms_to_bpm(args.ms):.1f}")
    return 0


def cmd_detect(args: argparse.Namespace) -> int:
    source = WavFileInput(args.wav, block_size=args.frame_size)
    tuner = _factory(args).create_tuner_service(
        frame_size=args.frame_size, sample_rate=source.sample_rate
    )

    def show(reading: PitchReading) -> None:
        print(f"{reading.timestamp:8.3f}s  {reading.frequency:8.2f} Hz  {reading.note}")

    tuner.on_pitch(show)
    tuner.on_silence(lambda timestamp: print(f"{timestamp:8.3f}s  --"))
    for block, timestamp in source.blocks():
        tuner.process_audio(block, timestamp)
    return 0


def cmd_export_midi(args: argparse.Namespace) -> int:
    payload = json.loads(Path(args.notes_json).read_text())
    result = parse_analysis(payload)
    if args.bpm is not None:
        bpm = args.bpm
    elif result.bpm is not None:
        bpm = result.bpm
    else:
        bpm = _factory(args).default_bpm()
    path = write_midi_file(args.output, result.notes, bpm)
    print(f"Wrote {len(result.notes)} notes at {bpm:g} BPM to {path}")
    return 0


def run_tap_loop(
    tracker: TapTempoTracker,
    read_line: Callable[[], str] = input,
    clock: Callable[[], float] = time.monotonic,
) -> Optional[int]:
    """Read taps from ``read_line`` until 'q' or EOF; return the final BPM."""
    print("Press Enter to tap, 'r' + Enter to reset, 'q' + Enter to quit.")
    while True:
        try:
            line = read_line().strip().lower()
        except EOFError:
            break
        if line == "q":
            break
        if line == "r":
            tracker.reset()
            print("-- BPM")
            continue
        bpm = tracker.record_tap(clock() * 1000.0)
        print(f"{bpm} BPM" if bpm is not None else "-- BPM")
    return tracker.bpm


def cmd_tap(args: argparse.Namespace) -> int:
    run_tap_loop(_factory(args).create_tap_tempo_tracker())
    return 0


def cmd_listen(args: argparse.Namespace) -> int:
    # Imported here: sounddevice needs PortAudio at import time
    from ..audio.audio_input import SoundDeviceInput

    audio_input = SoundDeviceInput(device_id=args.device)
    tuner = _factory(args).create_tuner_service(audio_input=audio_input)

    def show(reading: PitchReading) -> None:
        print(f"{reading.note}  ({reading.frequency:.1f} Hz)")

    if not tuner.start(show):
        return 1
    try:
        time.sleep(args.duration)
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    finally:
        tuner.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sidekick", description="Sidekick - pocket musician's toolkit"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--config-dir", default=None, help="Configuration directory (default: ~/.config/sidekick)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    p = subparsers.add_parser("hz-to-note", help="Nearest note and cents for a frequency")
    p.add_argument("frequency", type=float, help="Frequency in Hz")
    p.add_argument("--flats", action="store_true", help="Use flat notes instead of sharps")
    p.set_defaults(func=cmd_hz_to_note)

    p = subparsers.add_parser("note-to-hz", help="Frequency of a note such as A4 or Bb3")
    p.add_argument("note", help="Note name in scientific pitch notation")
    p.set_defaults(func=cmd_note_to_hz)

    p = subparsers.add_parser("bpm-to-ms", help="Beat length in milliseconds")
    p.add_argument("bpm", type=float)
    p.set_defaults(func=cmd_bpm_to_ms)

    p = subparsers.add_parser("ms-to-bpm", help="Tempo for a beat length in milliseconds")
    p.add_argument("ms", type=float)
    p.set_defaults(func=cmd_ms_to_bpm)

    p = subparsers.add_parser("detect", help="Run the pitch estimator over a sound file")
    p.add_argument("wav", help="Path to a WAV/FLAC/OGG file")
    p.add_argument(
        "--frame-size", type=int, default=2048, help="Analysis window in samples (default: 2048)"
    )
    p.set_defaults(func=cmd_detect)

    p = subparsers.add_parser("export-midi", help="Write a MIDI file from transcription JSON")
    p.add_argument("notes_json", help="JSON object with 'notes' and optional 'bpm'")
    p.add_argument("output", help="Output .mid path")
    p.add_argument("--bpm", type=float, default=None, help="Override the tempo")
    p.set_defaults(func=cmd_export_midi)

    p = subparsers.add_parser("tap", help="Tap tempo on the keyboard")
    p.set_defaults(func=cmd_tap)

    p = subparsers.add_parser("listen", help="Live tuner from the microphone")
    p.add_argument("--device", type=int, default=None, help="Audio input device ID")
    p.add_argument(
        "--duration", type=float, default=30.0, help="Listening time in seconds (default: 30)"
    )
    p.set_defaults(func=cmd_listen)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, or None to use sys.argv

    Returns:
        Exit code (0 for success, 2 for invalid input)
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)

    setup_logging("DEBUG" if parsed_args.debug else None)

    if not getattr(parsed_args, "func", None):
        parser.print_help()
        return 1

    try:
        return parsed_args.func(parsed_args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

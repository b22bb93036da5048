import unittest

import numpy as np

from sidekick.detection.pitch_estimator import PitchEstimator, autocorrelate
from sidekick.note_utils import frequency_to_note


def sine(freq, sample_rate=44100, size=2048, amplitude=0.5):
    t = np.arange(size) / sample_rate
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


class TestPitchEstimator(unittest.TestCase):
    def setUp(self):
        self.estimator = PitchEstimator()

    def test_a440(self):
        freq = self.estimator.estimate(sine(440.0), 44100)
        self.assertIsNotNone(freq)
        self.assertLessEqual(abs(freq - 440.0), 1.0)

        label = frequency_to_note(freq)
        self.assertEqual((label.pitch_class, label.octave), ("A", 4))
        self.assertLessEqual(abs(label.cents), 5)

    def test_a440_at_48k(self):
        freq = self.estimator.estimate(sine(440.0, sample_rate=48000), 48000)
        self.assertLessEqual(abs(freq - 440.0), 1.0)

    def test_other_notes(self):
        for freq, expected in ((220.0, "A3"), (329.63, "E4"), (880.0, "A5")):
            detected = self.estimator.estimate(sine(freq), 44100)
            self.assertEqual(frequency_to_note(detected).name, expected)

    def test_harmonic_rich_tone_reports_fundamental(self):
        t = np.arange(2048) / 44100
        frame = 0.4 * np.sin(2 * np.pi * 220 * t) + 0.2 * np.sin(2 * np.pi * 440 * t)
        self.assertEqual(frequency_to_note(self.estimator.estimate(frame, 44100)).name, "A3")

    def test_silence(self):
        self.assertIsNone(self.estimator.estimate(np.zeros(2048, dtype=np.float32), 44100))

    def test_below_noise_floor(self):
        rng = np.random.default_rng(0)
        noise = rng.uniform(-0.005, 0.005, 2048)
        self.assertIsNone(self.estimator.estimate(noise, 44100))
        # A quiet but clean tone is still rejected on RMS alone
        self.assertIsNone(self.estimator.estimate(sine(440.0, amplitude=0.01), 44100))

    def test_quiet_tone_uses_whole_frame(self):
        # Above the noise floor, below the trigger level
        frame = sine(440.0, amplitude=0.1)
        freq = self.estimator.estimate(frame, 44100)
        self.assertIsNotNone(freq)
        self.assertLessEqual(abs(freq - 440.0), 1.5)
        self.assertEqual(frequency_to_note(freq).name, "A4")

    def test_tone_surrounded_by_silence(self):
        tone = sine(440.0, size=1024)
        frame = np.concatenate([np.zeros(512, dtype=np.float32), tone, np.zeros(512, dtype=np.float32)])
        freq = self.estimator.estimate(frame, 44100)
        self.assertEqual(frequency_to_note(freq).name, "A4")
        self.assertLessEqual(abs(freq - 440.0), 2.0)
        # Only the loud span is analysed, so the padding changes nothing
        self.assertEqual(freq, self.estimator.estimate(tone, 44100))

    def test_monotonic_correlation_is_no_pitch(self):
        # Constant offset: correlation falls for every lag
        self.assertIsNone(self.estimator.estimate(np.full(2048, 0.5), 44100))

    def test_tiny_frames(self):
        self.assertIsNone(self.estimator.estimate([], 44100))
        self.assertIsNone(self.estimator.estimate([0.5, -0.5], 44100))

    def test_reading_details(self):
        reading = self.estimator.analyze(sine(440.0), 44100)
        self.assertAlmostEqual(reading.rms, 0.5 / np.sqrt(2), places=2)
        self.assertAlmostEqual(44100 / reading.period, reading.frequency)
        self.assertIsNone(reading.note)

    def test_accepts_lists(self):
        freq = self.estimator.estimate(sine(440.0).tolist(), 44100)
        self.assertLessEqual(abs(freq - 440.0), 1.0)

    def test_invalid_input(self):
        with self.assertRaises(ValueError):
            self.estimator.estimate(np.zeros((2, 1024)), 44100)
        with self.assertRaises(ValueError):
            self.estimator.estimate(sine(440.0), 0)
        with self.assertRaises(ValueError):
            PitchEstimator(noise_floor=-1)


class TestAutocorrelate(unittest.TestCase):
    def test_matches_definition(self):
        buf = np.array([1.0, 2.0, -1.0, 0.5])
        expected = [
            sum(buf[j] * buf[j + lag] for j in range(len(buf) - lag))
            for lag in range(len(buf))
        ]
        np.testing.assert_allclose(autocorrelate(buf), expected)


if __name__ == "__main__":
    unittest.main()

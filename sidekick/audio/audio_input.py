"""Live microphone input using sounddevice."""

from __future__ import annotations
import numpy as np
import sounddevice as sd
import time
from typing import Optional, Callable, ClassVar

from ..logger import get_logger
from ..core.interfaces import IAudioInput

logger = get_logger(__name__)


class SoundDeviceInput(IAudioInput):
    """Audio input handler using the sounddevice library."""

    SAMPLE_RATE: ClassVar[int] = 44100  # Hz
    FRAMES_PER_BUFFER: ClassVar[int] = 1024
    CHANNELS: ClassVar[int] = 1  # Mono audio
    FALLBACK_RATES: ClassVar[tuple] = (48000, 44100, 22050, 16000)

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        frames_per_buffer: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> None:
        """Initialize the audio input handler.

        Args:
            device_id: Audio input device ID, or None for the system default
            sample_rate: Sample rate in Hz, or None for default (44100)
            frames_per_buffer: Block size in frames, or None for default (1024)
            channels: Number of audio channels, or None for default (1)
        """
        self._device_id = device_id
        self._sample_rate = sample_rate or self.SAMPLE_RATE
        self._frames_per_buffer = frames_per_buffer or self.FRAMES_PER_BUFFER
        self._channels = channels or self.CHANNELS

        self._stream: Optional[sd.InputStream] = None
        self._callback: Optional[Callable[[np.ndarray, float], None]] = None
        self._running = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def is_running(self) -> bool:
        return self._running

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info,
        status: sd.CallbackFlags,
    ) -> None:
        """Forward the first channel of each block.

        Runs on the audio thread; keep it short.
        """
        if status:
            logger.warning(f"Audio callback status: {status}")

        if self._callback:
            audio_data = indata[:, 0] if indata.ndim > 1 else indata
            self._callback(audio_data.copy(), time.time())

    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        """Open the input stream, trying the configured rate first.

        Returns:
            True if a stream was started, False otherwise
        """
        if self._running:
            logger.warning("Audio input already running")
            return True

        self._callback = callback

        rates = [self._sample_rate] + [r for r in self.FALLBACK_RATES if r != self._sample_rate]
        for rate in rates:
            try:
                logger.info(f"Trying to start audio input with sample rate: {rate} Hz")
                self._stream = sd.InputStream(
                    device=self._device_id,
                    samplerate=rate,
                    blocksize=self._frames_per_buffer,
                    channels=self._channels,
                    dtype="float32",
                    callback=self._audio_callback,
                )
                self._stream.start()
                self._sample_rate = rate
                self._running = True
                logger.info(f"Audio input started with sample rate {rate} Hz")
                return True
            except sd.PortAudioError as e:
                logger.warning(f"Failed to start audio input with sample rate {rate} Hz: {e}")
                if self._stream:
                    self._stream.close()
                    self._stream = None

        logger.error("Could not start audio input with any sample rate")
        return False

    def stop(self) -> None:
        """Stop capturing audio."""
        if not self._running:
            return

        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        self._running = False
        logger.info("Audio input stopped")

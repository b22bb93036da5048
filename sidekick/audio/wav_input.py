"""Audio input that reads frames from a sound file."""

from __future__ import annotations
from typing import Callable, Iterator, Tuple

import numpy as np
import soundfile as sf

from ..logger import get_logger
from ..core.interfaces import IAudioInput

logger = get_logger(__name__)


class WavFileInput(IAudioInput):
    """Delivers the first channel of a sound file in fixed-size blocks.

    Unlike the live input this runs synchronously: start() pushes every block
    through the callback and returns when the file is exhausted.
    """

    def __init__(self, file_path: str, block_size: int = 2048, gain: float = 1.0):
        self._file_path = str(file_path)
        self._block_size = block_size
        self._gain = gain
        self._running = False

        with sf.SoundFile(self._file_path) as f:
            self._sample_rate = f.samplerate
            self._channels = f.channels
            self._frames = f.frames

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def duration(self) -> float:
        return self._frames / self._sample_rate

    def blocks(self) -> Iterator[Tuple[np.ndarray, float]]:
        """Yield (samples, start time in seconds) for each block of the file."""
        position = 0
        for block in sf.blocks(
            self._file_path, blocksize=self._block_size, dtype="float32", always_2d=True
        ):
            data = block[:, 0]
            if self._gain != 1.0:
                data = data * self._gain
            yield data, position / self._sample_rate
            position += len(block)

    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        self._running = True
        try:
            for data, timestamp in self.blocks():
                if not self._running:
                    break
                callback(data, timestamp)
        finally:
            self._running = False
        logger.info(f"Finished reading {self._file_path}")
        return True

    def stop(self) -> None:
        self._running = False

    def is_running(self) -> bool:
        return self._running

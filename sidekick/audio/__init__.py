"""Audio sources and the tuner service.

The live SoundDeviceInput is not imported here; it needs PortAudio at import time.
"""

from .tuner_service import TunerService
from .wav_input import WavFileInput

__all__ = ["TunerService", "WavFileInput"]

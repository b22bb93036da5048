"""Factory for creating Sidekick components."""

from typing import Any, Dict, Optional

from ..logger import get_logger
from ..detection.pitch_estimator import PitchEstimator
from ..detection.tap_tempo import TapTempoTracker
from ..midi.encoder import MidiFileEncoder
from ..audio.tuner_service import TunerService
from .config import ConfigManager
from .interfaces import IAudioInput

logger = get_logger(__name__)


class ComponentFactory:
    """Factory for creating Sidekick components from configuration."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

    def _config(self, name: str, overrides: Dict[str, Any]) -> Dict[str, Any]:
        config = self.config_manager.get_config(name)
        config.update(overrides)
        return config

    def create_pitch_estimator(self, **kwargs) -> PitchEstimator:
        """Create a pitch estimator; keyword arguments override the config."""
        config = self._config("pitch_estimator", kwargs)
        instance = PitchEstimator(
            noise_floor=config["noise_floor"],
            trigger_threshold=config["trigger_threshold"],
        )
        logger.debug(f"Created pitch estimator: {config}")
        return instance

    def create_tap_tempo_tracker(self, **kwargs) -> TapTempoTracker:
        config = self._config("tap_tempo", kwargs)
        return TapTempoTracker(stale_after_ms=config["stale_after_ms"])

    def create_midi_encoder(self, **kwargs) -> MidiFileEncoder:
        return MidiFileEncoder(**kwargs)

    def default_bpm(self) -> float:
        return float(self.config_manager.get_config("midi_export")["default_bpm"])

    def create_tuner_service(
        self, audio_input: Optional[IAudioInput] = None, **kwargs
    ) -> TunerService:
        """Create a tuner service with an estimator built from the same config.

        Args:
            audio_input: Optional audio source for start()
            **kwargs: Overrides for the pitch_estimator config section
        """
        config = self._config("pitch_estimator", kwargs)
        estimator = PitchEstimator(
            noise_floor=config["noise_floor"],
            trigger_threshold=config["trigger_threshold"],
        )
        instance = TunerService(
            estimator=estimator,
            audio_input=audio_input,
            frame_size=config["frame_size"],
            sample_rate=config["sample_rate"],
        )
        logger.info(f"Created tuner service: frame_size={config['frame_size']}")
        return instance

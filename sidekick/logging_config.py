"""Centralized logging configuration for Sidekick.

This module provides a consistent way to configure logging across the application.
"""

import logging
import sys
from typing import Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "sidekick": logging.INFO,
    "sidekick.note_utils": logging.INFO,
    "sidekick.detection": logging.INFO,  # Set to DEBUG for per-frame pitch details
    "sidekick.midi": logging.INFO,
    "sidekick.core": logging.INFO,
    "sidekick.audio": logging.INFO,
    "sidekick.services": logging.INFO,
    "sidekick.cli": logging.INFO,
    # Libraries/third-party
    "soundfile": logging.ERROR,
    "sounddevice": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

# Shared console handler
_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'sidekick' log levels with this level (e.g., "DEBUG").
    """
    global _console_handler

    # Create a single, shared console handler if it doesn't exist
    if _console_handler is None:
        _console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        _console_handler.setFormatter(formatter)

    # Determine log levels
    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("sidekick"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Only the top of each subtree gets the handler; children propagate up to it
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name)
        logger.setLevel(module_level)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        if module_name in ("", "sidekick") or not module_name.startswith("sidekick"):
            logger.addHandler(_console_handler)
            logger.propagate = False

    logging.getLogger("sidekick").debug("Logging configuration complete")

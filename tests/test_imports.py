"""
Verify every Sidekick module imports cleanly.
"""

import importlib
import pkgutil

import pytest

import sidekick

# Needs the PortAudio shared library at import time
SKIP = {"sidekick.audio.audio_input", "sidekick.__main__"}


def find_modules():
    return sorted(
        info.name
        for info in pkgutil.walk_packages(sidekick.__path__, prefix="sidekick.")
        if info.name not in SKIP
    )


@pytest.mark.parametrize("module_name", find_modules())
def test_module_imports(module_name):
    importlib.import_module(module_name)

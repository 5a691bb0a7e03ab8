"""Pytest configuration and shared fixtures."""

import os
import sys
from pathlib import Path

import numpy as np
import pytest

# Headless Pygame: no window, no audio device.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pygame  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def pygame_headless():
    """Initialise Pygame once for the whole run."""
    pygame.init()
    yield
    pygame.quit()


@pytest.fixture
def rng():
    """A seeded generator so every test sees the same draws."""
    return np.random.default_rng(1234)


@pytest.fixture
def small_config():
    """A configuration with small particle counts to keep ticks fast."""
    return {
        "seed": 7,
        "run_control": {"log_throttle_steps": 5},
        "flocking": {"particle_count": 60},
        "pairing": {"particle_count": 80},
        "gravity": {"body_count": 4, "trail_length": 20},
        "orbitals": {"point_count": 300},
    }


@pytest.fixture
def restore_root_logger():
    """Puts the root logger back the way it was after a test reconfigures it."""
    import logging

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(scope="session")
def project_root_path():
    """Provide the project root path."""
    return Path(__file__).parent.parent

"""Test configuration for pytest."""

import logging

import numpy as np
import pytest
from PIL import Image


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Keep pixeldedup loggers quiet unless a test asks otherwise."""
    logging.getLogger('pixeldedup').setLevel(logging.WARNING)


def gradient_array(width: int, height: int, vertical: bool = False) -> np.ndarray:
    """Smooth 0..255 ramp, horizontal by default."""
    if vertical:
        ramp = np.linspace(0, 255, height)[:, np.newaxis]
        return np.repeat(ramp, width, axis=1).astype(np.uint8)
    ramp = np.linspace(0, 255, width)[np.newaxis, :]
    return np.repeat(ramp, height, axis=0).astype(np.uint8)


@pytest.fixture
def make_image(tmp_path):
    """Factory writing a PNG gradient image and returning its path."""
    def _make(name: str, size=(64, 64), vertical: bool = False, directory=None):
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        width, height = size
        img = Image.fromarray(gradient_array(width, height, vertical)).convert('RGB')
        img.save(path)
        return path
    return _make

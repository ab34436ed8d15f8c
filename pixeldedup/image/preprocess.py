"""
Image decoding and normalization into intensity grids.
"""

from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .fingerprint import HashAlgorithm

class ImageDecodeError(Exception):
    """Raised when an image cannot be decoded or normalized."""

def to_grid(img: Image.Image, size: Tuple[int, int]) -> np.ndarray:
    """Convert a decoded image to a grayscale grid of ``size`` (width, height).

    EXIF orientation is applied first so rotated copies of a photo land
    on the same grid.
    """
    img = ImageOps.exif_transpose(img)
    # ITU-R 601-2 luma, same weights as the classic 0.299/0.587/0.114 formula
    gray = img.convert('L')
    resized = gray.resize(size, resample=Image.Resampling.BILINEAR)
    return np.asarray(resized, dtype=np.float64)

def load_grid(path: Union[str, Path], algorithm: Union[str, HashAlgorithm]) -> np.ndarray:
    """Decode ``path`` and return the grid ``algorithm`` consumes."""
    algorithm = HashAlgorithm.parse(algorithm)
    try:
        with Image.open(path) as img:
            return to_grid(img, algorithm.grid_size)
    except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Failed to decode {path}: {e}") from e

def probe_dimensions(path: Union[str, Path]) -> Tuple[int, int]:
    """Read (width, height) from the image header without decoding pixels."""
    with Image.open(path) as img:
        return img.size

"""
Perceptual fingerprint functions.

Every algorithm maps a fixed-size grid of grayscale intensities (0..255,
numpy array of shape ``(height, width)``) to a 64-bit unsigned integer.
Bit ``i`` of the fingerprint corresponds to position ``i`` of the
row-major scan the algorithm performs.
"""

from enum import Enum
from typing import Tuple, Union

import imagehash
import numpy as np

FINGERPRINT_BITS = 64
FINGERPRINT_MASK = (1 << FINGERPRINT_BITS) - 1

# Coefficients smaller than this are floating point noise
DCT_EPSILON = 1e-9
DCT_SIZE = 32
DCT_BLOCK = 8

class UnsupportedAlgorithmError(ValueError):
    """Raised for an algorithm name that is not one of the known hashes."""

class GridShapeError(ValueError):
    """Raised when a grid does not have the size the algorithm requires."""

class HashAlgorithm(Enum):
    AVERAGE = "ahash"
    DIFFERENCE = "dhash"
    DCT = "phash"

    @classmethod
    def parse(cls, value: Union[str, 'HashAlgorithm']) -> 'HashAlgorithm':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ', '.join(a.value for a in cls)
            raise UnsupportedAlgorithmError(
                f"Unknown hash algorithm: {value!r} (expected one of: {choices})"
            ) from None

    @property
    def grid_size(self) -> Tuple[int, int]:
        """(width, height) of the grid the algorithm consumes."""
        return GRID_SIZES[self]

GRID_SIZES = {
    HashAlgorithm.AVERAGE: (8, 8),
    HashAlgorithm.DIFFERENCE: (9, 8),
    HashAlgorithm.DCT: (DCT_SIZE, DCT_SIZE),
}

def hamming_distance(a: int, b: int) -> int:
    """Number of differing bits between two fingerprints."""
    return bin(a ^ b).count("1")

def _check_grid(grid: np.ndarray, algorithm: HashAlgorithm) -> np.ndarray:
    width, height = algorithm.grid_size
    grid = np.asarray(grid, dtype=np.float64)
    if grid.shape != (height, width):
        raise GridShapeError(
            f"{algorithm.value} needs a {width}x{height} grid, got shape {grid.shape}"
        )
    return grid

def _pack_bits(bits: np.ndarray) -> int:
    """Pack 64 booleans into an integer, element ``i`` becoming bit ``i``."""
    packed = np.packbits(bits.astype(np.uint8).ravel(), bitorder='little')
    return int(packed.view('<u8')[0])

def average_hash(grid: np.ndarray) -> int:
    """Average hash of an 8x8 grid.

    A bit is set when its sample is at least the mean, so uniform
    images (every sample equal to the mean) hash to all ones.
    """
    grid = _check_grid(grid, HashAlgorithm.AVERAGE)
    return _pack_bits(grid >= grid.mean())

def difference_hash(grid: np.ndarray) -> int:
    """Difference hash of a 9 wide by 8 high grid.

    A bit is set when a sample is strictly brighter than its right-hand
    neighbour; a constant grid therefore hashes to zero.
    """
    grid = _check_grid(grid, HashAlgorithm.DIFFERENCE)
    return _pack_bits(grid[:, :-1] > grid[:, 1:])

def dct_matrix(size: int) -> np.ndarray:
    """Orthonormal DCT-II basis; row ``u`` holds frequency ``u``."""
    k = np.arange(size)
    basis = np.cos(np.outer(k, 2 * k + 1) * np.pi / (2 * size))
    scale = np.full(size, np.sqrt(2.0 / size))
    scale[0] = np.sqrt(1.0 / size)
    return basis * scale[:, np.newaxis]

_DCT_BASIS = dct_matrix(DCT_SIZE)

def dct_2d(values: np.ndarray) -> np.ndarray:
    """Separable 2-D DCT-II of a square matrix."""
    basis = _DCT_BASIS if values.shape[0] == DCT_SIZE else dct_matrix(values.shape[0])
    return basis @ values @ basis.T

def dct_hash(grid: np.ndarray) -> int:
    """DCT perceptual hash of a 32x32 grid.

    Coefficients of the low-frequency 8x8 block are compared against the
    mean of the AC coefficients. Near-zero coefficients are clamped to
    zero and left out of that mean; a constant non-black image thus has
    a single non-zero coefficient (DC) and hashes to 1.
    """
    grid = _check_grid(grid, HashAlgorithm.DCT)
    coefficients = dct_2d(grid / 255.0)[:DCT_BLOCK, :DCT_BLOCK].ravel()
    coefficients[np.abs(coefficients) < DCT_EPSILON] = 0.0

    ac = coefficients[1:]
    significant = ac[ac != 0.0]
    mean = significant.mean() if significant.size else 0.0

    return _pack_bits(coefficients - mean > DCT_EPSILON)

_HASH_FUNCTIONS = {
    HashAlgorithm.AVERAGE: average_hash,
    HashAlgorithm.DIFFERENCE: difference_hash,
    HashAlgorithm.DCT: dct_hash,
}

def compute_fingerprint(algorithm: Union[str, HashAlgorithm], grid: np.ndarray) -> int:
    """Fingerprint ``grid`` with the named algorithm."""
    return _HASH_FUNCTIONS[HashAlgorithm.parse(algorithm)](grid)

def to_image_hash(fingerprint: int) -> imagehash.ImageHash:
    """Wrap a fingerprint as an ``imagehash.ImageHash``.

    The most significant bit comes first, so ``str()`` of the result is
    the zero-padded hex form of the integer.
    """
    fingerprint &= FINGERPRINT_MASK
    bits = [(fingerprint >> (FINGERPRINT_BITS - 1 - j)) & 1 for j in range(FINGERPRINT_BITS)]
    return imagehash.ImageHash(np.array(bits, dtype=bool).reshape(8, 8))

def from_image_hash(image_hash: imagehash.ImageHash) -> int:
    """Inverse of :func:`to_image_hash`."""
    return int(str(image_hash), 16)

def format_fingerprint(fingerprint: int) -> str:
    return str(to_image_hash(fingerprint))

"""
pixeldedup - Near-Duplicate Image Finder

Reduces images to 64-bit perceptual fingerprints, indexes them in a
BK-tree and groups the ones that are close under Hamming distance.
"""

from .common.utils import VERSION
from .image.fingerprint import HashAlgorithm, compute_fingerprint, hamming_distance
from .image.bktree import BKTree
from .image.cluster import build_clusters
from .image.ranking import rank_and_plan

__version__ = VERSION

__all__ = [
    'HashAlgorithm',
    'compute_fingerprint',
    'hamming_distance',
    'BKTree',
    'build_clusters',
    'rank_and_plan',
]

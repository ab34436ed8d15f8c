"""
Image fingerprinting, indexing, clustering and ranking.
"""

from .fingerprint import (
    HashAlgorithm,
    UnsupportedAlgorithmError,
    GridShapeError,
    average_hash,
    difference_hash,
    dct_hash,
    compute_fingerprint,
    hamming_distance,
)
from .bktree import BKTree, IndexSealedError
from .cluster import build_clusters
from .ranking import rank_and_plan, build_plan, read_file_meta

__all__ = [
    'HashAlgorithm',
    'UnsupportedAlgorithmError',
    'GridShapeError',
    'average_hash',
    'difference_hash',
    'dct_hash',
    'compute_fingerprint',
    'hamming_distance',
    'BKTree',
    'IndexSealedError',
    'build_clusters',
    'rank_and_plan',
    'build_plan',
    'read_file_meta',
]

"""
Fingerprinting pipeline: parallel hashing feeding a single-writer index.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from ..common.cache import FingerprintCache
from ..common.utils import find_files, IMAGE_EXTENSIONS, VERBOSE
from .bktree import BKTree
from .fingerprint import HashAlgorithm, compute_fingerprint, format_fingerprint
from .preprocess import ImageDecodeError, load_grid

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class HashFailure:
    """A file that could not be fingerprinted."""
    path: str
    error: str

@dataclass
class HashReport:
    """Outcome of fingerprinting a batch of files."""
    algorithm: HashAlgorithm
    items: Dict[str, int] = field(default_factory=dict)
    index: BKTree = field(default_factory=BKTree)
    failures: List[HashFailure] = field(default_factory=list)
    total: int = 0
    cached: int = 0

    @property
    def hashed(self) -> int:
        return len(self.items)

    def summary(self) -> str:
        return f"Hashed {self.hashed} of {self.total} images with {self.algorithm.value}"

def find_image_files(directories: List[Path], recursive: bool = True) -> List[Path]:
    """Find all image files in the specified directories."""
    return find_files(directories, IMAGE_EXTENSIONS, recursive, logger)

def fingerprint_file(path: str, algorithm: str) -> Tuple[str, Optional[int], Optional[str]]:
    """Fingerprint one file; this is the unit of work sent to worker processes.

    Returns (path, fingerprint, None) on success and (path, None, error)
    when the image cannot be decoded.
    """
    try:
        grid = load_grid(path, algorithm)
    except ImageDecodeError as e:
        return path, None, str(e)
    return path, compute_fingerprint(algorithm, grid), None

def fingerprint_files(paths: Iterable[Path],
                      algorithm=HashAlgorithm.DCT,
                      workers: Optional[int] = None,
                      cache: Optional[FingerprintCache] = None,
                      show_progress: bool = False) -> HashReport:
    """Fingerprint ``paths`` and build a sealed index over the results.

    Hashing runs in a process pool (inline when ``workers == 1``). Results
    come back in input order and only this function inserts into the
    index, so the index has a single writer and a reproducible shape.
    Files that fail to decode are logged and left out.
    """
    algorithm = HashAlgorithm.parse(algorithm)
    paths = [str(p) for p in paths]
    report = HashReport(algorithm=algorithm, total=len(paths))

    pending: List[str] = []
    cached: Dict[str, int] = {}
    for path in paths:
        fingerprint = cache.get(Path(path)) if cache is not None else None
        if fingerprint is None:
            pending.append(path)
        else:
            cached[path] = fingerprint
    report.cached = len(cached)
    if cached:
        logger.log(VERBOSE, f"Reusing {len(cached)} cached fingerprints")

    work = partial(fingerprint_file, algorithm=algorithm.value)
    with tqdm(total=len(paths), desc=f"Hashing ({algorithm.value})", disable=not show_progress) as pbar:
        pbar.update(len(cached))
        if workers == 1 or len(pending) <= 1:
            results = map(work, pending)
            computed = _collect(results, pbar)
        else:
            with ProcessPoolExecutor(max_workers=workers) as executor:
                computed = _collect(executor.map(work, pending, chunksize=8), pbar)

    for path in paths:
        if path in cached:
            fingerprint = cached[path]
        else:
            fingerprint, error = computed[path]
            if error is not None:
                logger.warning(f"Skipping {path}: {error}")
                report.failures.append(HashFailure(path=path, error=error))
                continue
            if cache is not None:
                cache.put(Path(path), fingerprint)
        if path in report.items:
            continue
        report.items[path] = fingerprint
        report.index.insert(fingerprint, path)
        logger.debug(f"{path}: {format_fingerprint(fingerprint)}")

    report.index.seal()
    if cache is not None:
        cache.save()

    logger.info(report.summary())
    return report

def _collect(results, pbar) -> Dict[str, Tuple[Optional[int], Optional[str]]]:
    computed = {}
    for path, fingerprint, error in results:
        computed[path] = (fingerprint, error)
        pbar.update(1)
    return computed

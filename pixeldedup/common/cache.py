"""
Fingerprint cache keyed by file path, size and modification time.
"""

import json
import os
from pathlib import Path
from typing import Dict, Optional
import logging

import imagehash

from ..image.fingerprint import HashAlgorithm, from_image_hash, to_image_hash

logger = logging.getLogger(__name__)

class FingerprintCache:
    """Remembers fingerprints between runs for files that did not change."""

    def __init__(self, algorithm, cache_dir: Optional[Path] = None):
        """Initialize the cache for one algorithm with an optional custom directory."""
        if cache_dir is None:
            cache_dir = Path.home() / ".cache" / "pixeldedup"
        self.algorithm = HashAlgorithm.parse(algorithm)
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._entries: Dict[str, Dict] = {}
        self._dirty = False
        self.hits = 0
        self.misses = 0

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / f"fingerprints-{self.algorithm.value}.json"

    def load(self) -> 'FingerprintCache':
        """Load entries from disk; a missing or corrupt file gives an empty cache."""
        if not self.cache_file.exists():
            return self
        try:
            with open(self.cache_file, 'r') as f:
                data = json.load(f)
            self._entries = data if isinstance(data, dict) else {}
            logger.debug(f"Loaded {len(self._entries)} cached fingerprints from {self.cache_file}")
        except Exception as e:
            logger.warning(f"Failed to load cache {self.cache_file}: {e}")
            self._entries = {}
        return self

    def prune(self) -> int:
        """Forget entries whose files no longer exist."""
        stale = [p for p in self._entries if not os.path.exists(p)]
        for path in stale:
            del self._entries[path]
        if stale:
            self._dirty = True
            logger.debug(f"Pruned {len(stale)} stale cache entries")
        return len(stale)

    def save(self) -> None:
        """Drop stale entries, then write to disk if anything changed."""
        self.prune()
        if not self._dirty:
            return
        try:
            with open(self.cache_file, 'w') as f:
                json.dump(self._entries, f)
            self._dirty = False
            logger.debug(f"Saved {len(self._entries)} fingerprints to {self.cache_file}")
        except Exception as e:
            logger.warning(f"Failed to save cache {self.cache_file}: {e}")

    def clear(self) -> None:
        """Drop all entries, in memory and on disk."""
        self._entries = {}
        self._dirty = False
        try:
            if self.cache_file.exists():
                self.cache_file.unlink()
                logger.debug(f"Cleared cache: {self.cache_file}")
        except Exception as e:
            logger.warning(f"Error clearing cache: {e}")

    @staticmethod
    def _stamp(path: Path) -> Optional[Dict]:
        try:
            stat = os.stat(path)
        except OSError:
            return None
        return {'size': stat.st_size, 'mtime': stat.st_mtime}

    def get(self, path: Path) -> Optional[int]:
        """Return the cached fingerprint if the file is unchanged."""
        entry = self._entries.get(str(path))
        stamp = self._stamp(path)
        if entry is None or stamp is None:
            self.misses += 1
            return None
        if entry.get('size') != stamp['size'] or entry.get('mtime') != stamp['mtime']:
            self.misses += 1
            return None
        try:
            fingerprint = from_image_hash(imagehash.hex_to_hash(entry['hash']))
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Ignoring bad cache entry for {path}: {e}")
            self.misses += 1
            return None
        self.hits += 1
        return fingerprint

    def put(self, path: Path, fingerprint: int) -> None:
        stamp = self._stamp(path)
        if stamp is None:
            return
        stamp['hash'] = str(to_image_hash(fingerprint))
        self._entries[str(path)] = stamp
        self._dirty = True

    def __len__(self) -> int:
        return len(self._entries)

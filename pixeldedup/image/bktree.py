"""
BK-tree index over 64-bit fingerprints under Hamming distance.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .fingerprint import hamming_distance

logger = logging.getLogger(__name__)

class IndexSealedError(RuntimeError):
    """Raised when inserting into an index that has been sealed."""

@dataclass
class _Node:
    key: int
    ids: List[str] = field(default_factory=list)
    children: Dict[int, int] = field(default_factory=dict)  # edge distance -> node handle

class BKTree:
    """Metric tree supporting "everything within radius R" queries.

    Nodes live in a flat list and refer to their children by position.
    The tree is written by a single owner while it is being built; after
    :meth:`seal` it is read-only and may be queried from many threads.
    """

    def __init__(self):
        self._nodes: List[_Node] = []
        self._size = 0
        self._sealed = False

    def __len__(self) -> int:
        return self._size

    @property
    def node_count(self) -> int:
        """Number of distinct fingerprints stored."""
        return len(self._nodes)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> 'BKTree':
        """End the build phase; further inserts raise :class:`IndexSealedError`."""
        self._sealed = True
        logger.debug(f"Index sealed with {self._size} items in {len(self._nodes)} nodes")
        return self

    def insert(self, fingerprint: int, item_id: str) -> None:
        """Associate ``item_id`` with ``fingerprint``."""
        if self._sealed:
            raise IndexSealedError("Cannot insert into a sealed index")

        self._size += 1
        if not self._nodes:
            self._nodes.append(_Node(fingerprint, [item_id]))
            return

        node = self._nodes[0]
        while True:
            distance = hamming_distance(fingerprint, node.key)
            if distance == 0:
                node.ids.append(item_id)
                return
            child: Optional[int] = node.children.get(distance)
            if child is None:
                node.children[distance] = len(self._nodes)
                self._nodes.append(_Node(fingerprint, [item_id]))
                return
            node = self._nodes[child]

    def query(self, fingerprint: int, radius: int) -> Set[str]:
        """Return every item within ``radius`` (inclusive) of ``fingerprint``."""
        if radius < 0:
            raise ValueError(f"Radius must be non-negative, got {radius}")

        found: Set[str] = set()
        if not self._nodes:
            return found

        stack = [0]
        while stack:
            node = self._nodes[stack.pop()]
            distance = hamming_distance(fingerprint, node.key)
            if distance <= radius:
                found.update(node.ids)

            # Triangle inequality: a match under this child is at edge
            # distance within [distance - radius, distance + radius]
            lower = distance - radius
            upper = distance + radius
            for edge, child in node.children.items():
                if lower <= edge <= upper:
                    stack.append(child)

        return found

"""
Grouping of fingerprints into connected components.
"""

import itertools
import logging
from collections import deque
from typing import Callable, Dict, List, Optional, Set

from ..common.models import Cluster

logger = logging.getLogger(__name__)

def sequential_ids(prefix: str = "dup_") -> Callable[[], str]:
    """Return a factory producing ``dup_0001``, ``dup_0002``, ..."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter):04d}"

def build_clusters(items: Dict[str, int],
                   index,
                   radius: int,
                   id_factory: Optional[Callable[[], str]] = None) -> List[Cluster]:
    """
    Partition ``items`` into connected components of the within-radius graph.

    Two items end up in the same cluster when a chain of items links them,
    each step at Hamming distance ``radius`` or less. Members at the two
    ends of a chain may be further apart than ``radius``.

    Args:
        items: Mapping of identifier -> fingerprint, iterated in its own order
        index: Object with ``query(fingerprint, radius)`` holding every item
        radius: Maximum Hamming distance between linked items
        id_factory: Zero-argument callable generating cluster ids

    Returns:
        List of clusters covering every item exactly once
    """
    if id_factory is None:
        id_factory = sequential_ids()

    visited: Set[str] = set()
    clusters: List[Cluster] = []

    for seed in items:
        if seed in visited:
            continue

        members: List[str] = []
        queue = deque([seed])
        visited.add(seed)

        while queue:
            current = queue.popleft()
            members.append(current)
            # Sorted so the discovery order does not depend on set ordering
            for neighbor in sorted(index.query(items[current], radius)):
                if neighbor not in visited and neighbor in items:
                    visited.add(neighbor)
                    queue.append(neighbor)

        cluster = Cluster(cluster_id=id_factory(), members=tuple(members))
        clusters.append(cluster)
        if len(members) > 1:
            logger.debug(f"Cluster {cluster.cluster_id}: {len(members)} members seeded by {seed}")

    duplicates = sum(1 for c in clusters if len(c) > 1)
    logger.info(f"Built {len(clusters)} clusters from {len(items)} items "
                f"({duplicates} with duplicates, radius {radius})")
    return clusters

"""
Keeper selection for duplicate clusters.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from ..common.models import Action, Cluster, FileMeta, PlanEntry
from .preprocess import probe_dimensions

logger = logging.getLogger(__name__)

MetadataLookup = Callable[[str], Optional[FileMeta]]

def read_file_meta(path: Union[str, Path]) -> FileMeta:
    """Collect pixel count, byte size and mtime for ``path``.

    Any failure yields :meth:`FileMeta.unavailable` so the file sorts last.
    """
    try:
        stat = os.stat(path)
        width, height = probe_dimensions(path)
    except Exception as e:
        logger.warning(f"Metadata unavailable for {path}: {e}")
        return FileMeta.unavailable()
    return FileMeta(pixel_count=width * height,
                    byte_size=stat.st_size,
                    modified_time=stat.st_mtime)

def _lookup(metadata_lookup: MetadataLookup, identifier: str) -> FileMeta:
    try:
        meta = metadata_lookup(identifier)
    except OSError as e:
        logger.warning(f"Metadata unavailable for {identifier}: {e}")
        meta = None
    return meta if meta is not None else FileMeta.unavailable()

def rank_key(identifier: str, meta: FileMeta) -> Tuple:
    """Sort key: most pixels, then largest file, then oldest, then name.

    The raw identifier is the last component so identifiers differing only
    in case still have a fixed order.
    """
    return (-meta.pixel_count, -meta.byte_size, meta.modified_time,
            identifier.lower(), identifier)

def rank_members(cluster: Cluster, metadata_lookup: MetadataLookup) -> List[Tuple[str, FileMeta]]:
    """Return cluster members with their metadata, best first."""
    ranked = [(member, _lookup(metadata_lookup, member)) for member in cluster.members]
    ranked.sort(key=lambda pair: rank_key(*pair))
    return ranked

def rank_and_plan(cluster: Cluster, metadata_lookup: MetadataLookup = read_file_meta) -> List[PlanEntry]:
    """Keep the best member of ``cluster`` and mark the others for deletion."""
    entries = []
    for position, (member, meta) in enumerate(rank_members(cluster, metadata_lookup)):
        if position == 0:
            action, reason = Action.KEEP, f"keeper({meta.describe()})"
        else:
            action, reason = Action.DELETE, f"dupe({meta.describe()})"
        entries.append(PlanEntry(cluster_id=cluster.cluster_id,
                                 action=action,
                                 identifier=member,
                                 reason=reason,
                                 meta=meta))
    if len(entries) > 1:
        logger.debug(f"Cluster {cluster.cluster_id}: keeping {entries[0].identifier}, "
                     f"{len(entries) - 1} to delete")
    return entries

def build_plan(clusters: Iterable[Cluster],
               metadata_lookup: MetadataLookup = read_file_meta,
               include_singletons: bool = False) -> List[PlanEntry]:
    """Plan every cluster; singletons are skipped unless requested."""
    plan: List[PlanEntry] = []
    for cluster in clusters:
        if cluster.is_singleton and not include_singletons:
            continue
        plan.extend(rank_and_plan(cluster, metadata_lookup))
    return plan

"""
Readers and writers for the index, clusters and plan files.
"""

import csv
import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterable, List, Union

from .models import Action, Cluster, PlanEntry

logger = logging.getLogger(__name__)

SEPARATOR = ','
PLAN_HEADER = ['clusterId', 'action', 'path', 'reason']

_MAX_FINGERPRINT = (1 << 64) - 1

PathLike = Union[str, Path]

# ======= Index file: identifier,fingerprint =======

def write_index(path: PathLike, items: Dict[str, int]) -> Path:
    """Write one ``identifier,unsigned_decimal`` line per item."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8', newline='\n') as f:
        for identifier, fingerprint in items.items():
            f.write(f"{identifier}{SEPARATOR}{fingerprint}\n")
    logger.debug(f"Wrote {len(items)} index records to {path}")
    return path

def parse_index_line(line: str):
    """Parse one index line into (identifier, fingerprint).

    The split happens on the last separator, so identifiers may contain
    commas. Raises ValueError for malformed lines.
    """
    identifier, sep, value = line.rstrip('\r\n').rpartition(SEPARATOR)
    if not sep or not identifier:
        raise ValueError("missing identifier or separator")
    fingerprint = int(value.strip())
    if not 0 <= fingerprint <= _MAX_FINGERPRINT:
        raise ValueError(f"fingerprint out of 64-bit range: {fingerprint}")
    return identifier, fingerprint

def read_index(path: PathLike) -> Dict[str, int]:
    """Read an index file, skipping blank and malformed lines."""
    items: Dict[str, int] = OrderedDict()
    with open(path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                identifier, fingerprint = parse_index_line(line)
            except ValueError as e:
                logger.warning(f"{path}:{line_number}: skipping malformed index row ({e})")
                continue
            items[identifier] = fingerprint
    logger.debug(f"Read {len(items)} index records from {path}")
    return items

# ======= Clusters file: cluster_id,identifier =======

def write_clusters(path: PathLike,
                   clusters: Iterable[Cluster],
                   include_singletons: bool = False) -> int:
    """Write one ``cluster_id,identifier`` line per membership.

    Returns the number of clusters written.
    """
    written = 0
    with open(path, 'w', encoding='utf-8', newline='\n') as f:
        for cluster in clusters:
            if cluster.is_singleton and not include_singletons:
                continue
            for member in cluster.members:
                f.write(f"{cluster.cluster_id}{SEPARATOR}{member}\n")
            written += 1
    logger.debug(f"Wrote {written} clusters to {path}")
    return written

def read_clusters(path: PathLike) -> List[Cluster]:
    """Read a clusters file, grouping memberships by cluster id in file order."""
    groups: Dict[str, List[str]] = OrderedDict()
    with open(path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, 1):
            line = line.rstrip('\r\n')
            if not line.strip():
                continue
            cluster_id, sep, identifier = line.partition(SEPARATOR)
            if not sep or not cluster_id or not identifier:
                logger.warning(f"{path}:{line_number}: skipping malformed cluster row")
                continue
            groups.setdefault(cluster_id, []).append(identifier)
    return [Cluster(cluster_id=cid, members=tuple(members)) for cid, members in groups.items()]

# ======= Plan file: clusterId,action,path,reason =======

def write_plan(path: PathLike, entries: Iterable[PlanEntry]) -> Path:
    """Write a plan as CSV with a header row."""
    path = Path(path)
    count = 0
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(PLAN_HEADER)
        for entry in entries:
            writer.writerow([entry.cluster_id, entry.action.value, entry.identifier, entry.reason])
            count += 1
    logger.debug(f"Wrote {count} plan entries to {path}")
    return path

def read_plan(path: PathLike) -> List[PlanEntry]:
    """Read a plan file, skipping the header and malformed rows."""
    entries: List[PlanEntry] = []
    with open(path, 'r', encoding='utf-8', newline='') as f:
        for row_number, row in enumerate(csv.reader(f), 1):
            if not row or not any(cell.strip() for cell in row):
                continue
            if row_number == 1 and row[0] == PLAN_HEADER[0]:
                continue
            if len(row) < 3 or not row[0] or not row[2]:
                logger.warning(f"{path}:{row_number}: skipping malformed plan row")
                continue
            try:
                action = Action.parse(row[1])
            except ValueError as e:
                logger.warning(f"{path}:{row_number}: {e}")
                continue
            reason = row[3] if len(row) > 3 else ""
            entries.append(PlanEntry(cluster_id=row[0], action=action,
                                     identifier=row[2], reason=reason))
    return entries

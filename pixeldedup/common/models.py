"""
Common data models for image deduplication.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Any

@dataclass(frozen=True)
class Cluster:
    """A connected group of items that are within radius of one another."""
    cluster_id: str
    members: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.members)

    @property
    def is_singleton(self) -> bool:
        return len(self.members) == 1

@dataclass(frozen=True)
class FileMeta:
    """Metadata the ranker uses to choose a keeper."""
    pixel_count: int
    byte_size: int
    modified_time: float  # seconds since the epoch

    @classmethod
    def unavailable(cls) -> 'FileMeta':
        """Sentinel for files that cannot be read; always ranks last."""
        return cls(pixel_count=-1, byte_size=-1, modified_time=math.inf)

    @property
    def is_unavailable(self) -> bool:
        return self.pixel_count < 0 and self.byte_size < 0

    def describe(self) -> str:
        if math.isinf(self.modified_time):
            mtime = "inf"
        else:
            mtime = str(int(self.modified_time * 1000))
        return f"pixels={self.pixel_count},size={self.byte_size},mtime={mtime}"

class Action(Enum):
    KEEP = "KEEP"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: str) -> 'Action':
        """Parse an action name case-insensitively."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown plan action: {value!r}") from None

@dataclass(frozen=True)
class PlanEntry:
    """One row of a deduplication plan."""
    cluster_id: str
    action: Action
    identifier: str
    reason: str = ""
    meta: Optional[FileMeta] = None

    @property
    def is_keeper(self) -> bool:
        return self.action is Action.KEEP

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            'cluster_id': self.cluster_id,
            'action': self.action.value,
            'path': self.identifier,
            'reason': self.reason,
        }
        if self.meta is not None:
            data['pixel_count'] = self.meta.pixel_count
            data['byte_size'] = self.meta.byte_size
            data['modified_time'] = None if math.isinf(self.meta.modified_time) else self.meta.modified_time
        return data

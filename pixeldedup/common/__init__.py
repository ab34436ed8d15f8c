"""
Common utilities and shared functionality for image deduplication.
"""

from .models import Cluster, FileMeta, Action, PlanEntry
from .utils import setup_logging, format_size, find_files, VERSION
from .formats import read_index, write_index, read_clusters, write_clusters, read_plan, write_plan
from .actions import apply_plan, generate_report
from .cli import DedupArgumentParser

__all__ = [
    'Cluster',
    'FileMeta',
    'Action',
    'PlanEntry',
    'setup_logging',
    'format_size',
    'find_files',
    'VERSION',
    'read_index',
    'write_index',
    'read_clusters',
    'write_clusters',
    'read_plan',
    'write_plan',
    'apply_plan',
    'generate_report',
    'DedupArgumentParser',
]

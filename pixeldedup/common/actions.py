"""
Actions on a deduplication plan: applying it and reporting on it.
"""

import csv
import io
import os
import shutil
import json
import logging
import sys
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set
from datetime import datetime

from colorama import Fore, Style

from . import utils
from .models import Action, PlanEntry

logger = logging.getLogger(__name__)

@dataclass
class ApplySummary:
    """Counts gathered while applying a plan."""
    moved: List[Path] = field(default_factory=list)
    linked: int = 0
    missing: int = 0
    failed: int = 0
    freed_bytes: int = 0

def group_entries(entries: List[PlanEntry]) -> Dict[str, List[PlanEntry]]:
    """Group plan entries by cluster id, keeping file order."""
    groups: Dict[str, List[PlanEntry]] = OrderedDict()
    for entry in entries:
        groups.setdefault(entry.cluster_id, []).append(entry)
    return groups

def apply_plan(entries: List[PlanEntry],
               quarantine_dir: Path,
               hardlink: bool = False,
               dry_run: bool = False) -> ApplySummary:
    """Move every DELETE file of the plan into ``quarantine_dir``.

    With ``hardlink`` the vacated path is replaced by a hard link to the
    cluster's keeper. KEEP files are never touched.
    """
    quarantine_dir = Path(quarantine_dir)
    if not dry_run:
        utils.ensure_dir(quarantine_dir)

    keepers = {e.cluster_id: Path(e.identifier) for e in entries if e.action is Action.KEEP}
    summary = ApplySummary()
    reserved: Set[Path] = set()

    for entry in entries:
        if entry.action is not Action.DELETE:
            continue

        source = Path(entry.identifier)
        if not source.exists():
            logger.warning(f"Not found, skipping: {source}")
            summary.missing += 1
            continue

        target = utils.unique_destination(quarantine_dir / source.name, reserved)
        reserved.add(target)
        if dry_run:
            logger.info(f"Would move: {source} -> {target}")
            continue

        try:
            size = source.stat().st_size
            shutil.move(str(source), str(target))
            logger.info(f"Moved: {source} -> {target}")
            summary.moved.append(target)
            summary.freed_bytes += size
        except Exception as e:
            logger.error(f"Error moving {source}: {e}")
            summary.failed += 1
            continue

        if hardlink:
            keeper = keepers.get(entry.cluster_id)
            if keeper is None or not keeper.exists():
                logger.warning(f"No keeper to link for {source}, left in quarantine only")
                continue
            try:
                os.link(str(keeper), str(source))
                logger.log(utils.VERBOSE, f"Created hardlink: {source} -> {keeper}")
                summary.linked += 1
            except OSError as e:
                logger.warning(f"Could not hardlink {source} to {keeper}: {e}")

    logger.info(f"Moved {len(summary.moved)} duplicate files to {quarantine_dir}")
    if summary.missing or summary.failed:
        logger.info(f"Skipped {summary.missing} missing files, {summary.failed} failures")
    logger.info(f"Freed {utils.format_size(summary.freed_bytes)}")
    return summary

def _reclaimable(entries: List[PlanEntry]) -> int:
    return sum(e.meta.byte_size for e in entries
               if e.action is Action.DELETE and e.meta is not None and e.meta.byte_size > 0)

def generate_report(entries: List[PlanEntry],
                    format_type: str = 'text',
                    output_file: Optional[Path] = None) -> Optional[Path]:
    """Generate a report of a plan; print it when no output file is given."""
    groups = group_entries(entries)
    total_deletes = sum(1 for e in entries if e.action is Action.DELETE)

    if format_type == 'json':
        json_data = {
            'timestamp': datetime.now().isoformat(),
            'total_groups': len(groups),
            'total_duplicates': total_deletes,
            'reclaimable_bytes': _reclaimable(entries),
            'duplicate_groups': [
                {'cluster_id': cid, 'entries': [e.to_dict() for e in group]}
                for cid, group in groups.items()
            ]
        }
        content = json.dumps(json_data, indent=2)

    elif format_type == 'csv':
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator='\n')
        writer.writerow(['group_id', 'action', 'file_path', 'reason'])
        for cid, group in groups.items():
            for entry in group:
                writer.writerow([cid, entry.action.value, entry.identifier, entry.reason])
        content = buffer.getvalue().rstrip('\n')

    else:  # Default to text format
        colorize = output_file is None and sys.stdout.isatty()

        def paint(text: str, color: str) -> str:
            return f"{color}{text}{Style.RESET_ALL}" if colorize else text

        report_lines = [
            "=== Image Deduplication Plan ===",
            f"Generated on: {datetime.now().isoformat()}",
            f"Total duplicate groups: {len(groups)}",
            f"Total files to delete: {total_deletes}",
            f"Reclaimable space: {utils.format_size(_reclaimable(entries))}",
            "\n=== Duplicate Groups ==="
        ]
        for i, (cid, group) in enumerate(groups.items()):
            report_lines.append(f"\nGroup {i+1} ({cid})")
            for entry in group:
                if entry.action is Action.KEEP:
                    label = paint("KEEP  ", Fore.GREEN)
                else:
                    label = paint("DELETE", Fore.RED)
                report_lines.append(f"{label} {entry.identifier}")
                if entry.reason:
                    report_lines.append(f"       {entry.reason}")
        content = '\n'.join(report_lines)

    if output_file:
        output_file = Path(output_file)
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.debug(f"{format_type} report saved to: {output_file.absolute()}")
        return output_file.absolute()

    print(content)
    return None

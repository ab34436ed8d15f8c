"""
Main entry point for image deduplication.
"""

import sys
import logging
from typing import Optional, Sequence

from colorama import just_fix_windows_console

from .common.utils import setup_logging
from .common.cli import DedupArgumentParser
from .common.actions import apply_plan, generate_report
from .common.cache import FingerprintCache
from .common.formats import (read_clusters, read_index, read_plan,
                             write_clusters, write_index, write_plan)
from .common.models import PlanEntry
from .image.analysis import find_image_files, fingerprint_files
from .image.bktree import BKTree
from .image.cluster import build_clusters
from .image.ranking import build_plan, read_file_meta

logger = logging.getLogger(__name__)

class Exit:
    OK = 0
    RUNTIME_ERROR = 1
    USAGE = 2

def run_hash(args) -> int:
    if args.clear_cache:
        FingerprintCache(args.algo, args.cache_dir).clear()
    cache = FingerprintCache(args.algo, args.cache_dir).load() if args.use_cache else None

    image_files = find_image_files(args.root, args.recursive)
    if not image_files:
        logger.error("No image files found in the specified directories")
        return Exit.USAGE

    report = fingerprint_files(image_files, args.algo, workers=args.workers,
                               cache=cache, show_progress=True)
    write_index(args.out, report.items)
    print(f"{report.summary()} -> {args.out}")
    return Exit.OK

def run_cluster(args) -> int:
    items = read_index(args.index)
    index = BKTree()
    for identifier, fingerprint in items.items():
        index.insert(fingerprint, identifier)
    index.seal()

    clusters = build_clusters(items, index, args.radius)
    written = write_clusters(args.out, clusters, include_singletons=args.include_singletons)
    print(f"Clusters: {written} written -> {args.out}")
    return Exit.OK

def run_plan(args) -> int:
    clusters = read_clusters(args.clusters)
    plan = build_plan(clusters, read_file_meta, include_singletons=args.include_singletons)
    write_plan(args.out, plan)
    print(f"Plan written -> {args.out}")
    return Exit.OK

def run_apply(args) -> int:
    entries = read_plan(args.plan)
    summary = apply_plan(entries, args.quarantine, hardlink=args.hardlink, dry_run=args.dry_run)
    if args.dry_run:
        print("Dry run completed, nothing was moved")
    else:
        print(f"Apply completed ({len(summary.moved)} moved). Review {args.quarantine}")
    return Exit.OK if not summary.failed else Exit.RUNTIME_ERROR

def run_report(args) -> int:
    entries = [
        PlanEntry(cluster_id=e.cluster_id, action=e.action, identifier=e.identifier,
                  reason=e.reason, meta=read_file_meta(e.identifier))
        for e in read_plan(args.plan)
    ]
    report_path = generate_report(entries, args.output_format, args.output_file)
    if report_path:
        print(f"\nReport saved to: {report_path}")
    return Exit.OK

COMMANDS = {
    'hash': run_hash,
    'cluster': run_cluster,
    'plan': run_plan,
    'apply': run_apply,
    'report': run_report,
}

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the script."""
    parser = DedupArgumentParser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    just_fix_windows_console()

    try:
        return COMMANDS[args.command](args)
    except FileNotFoundError as e:
        logger.error(f"No such file or directory: {e.filename}")
        return Exit.USAGE
    except Exception as e:
        logger.exception(f"{args.command} failed: {e}")
        return Exit.RUNTIME_ERROR

if __name__ == "__main__":
    sys.exit(main())

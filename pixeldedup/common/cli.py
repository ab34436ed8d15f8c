"""
Command-line argument handling for image deduplication.
"""

import argparse
from pathlib import Path
from typing import Optional, Sequence
from . import utils

class CustomHelpFormatter(argparse.RawTextHelpFormatter):
    """Custom formatter to improve the display of argument choices."""

    def _format_action_invocation(self, action):
        if not action.option_strings or action.nargs == 0:
            return super()._format_action_invocation(action)

        default = self._get_default_metavar_for_optional(action)
        args_string = self._format_args(action, default)

        # Format choices with proper spacing
        if action.choices:
            args_string = '{' + ', '.join(str(c) for c in action.choices) + '}'

        return ', '.join(action.option_strings) + ' ' + args_string

def radius_type(value: str) -> int:
    """argparse type for a Hamming radius in 0..64."""
    try:
        radius = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid radius: {value!r}")
    if not 0 <= radius <= utils.MAX_RADIUS:
        raise argparse.ArgumentTypeError(f"radius must be between 0 and {utils.MAX_RADIUS}, got {radius}")
    return radius

def workers_type(value: str) -> int:
    workers = int(value)
    if workers < 1:
        raise argparse.ArgumentTypeError("workers must be at least 1")
    return workers

class DedupArgumentParser:
    """Argument parser with one subcommand per pipeline stage."""

    def __init__(self):
        """Initialize parser and its subcommands."""
        self.parser = argparse.ArgumentParser(
            prog='pixeldedup',
            description="""pixeldedup - Near-Duplicate Image Finder

Hash images into 64-bit perceptual fingerprints, cluster fingerprints that are
close under Hamming distance, rank each cluster to pick one keeper, and move
the remaining copies to a quarantine folder.

Typical run:
  pixeldedup hash PHOTOS --out index.csv
  pixeldedup cluster index.csv --radius 10 --out clusters.csv
  pixeldedup plan clusters.csv --out plan.csv
  pixeldedup apply plan.csv --quarantine ./quarantine""",
            formatter_class=CustomHelpFormatter
        )
        self._add_common_arguments(self.parser)
        self.subparsers = self.parser.add_subparsers(dest='command', metavar='COMMAND')
        self.subparsers.required = True
        self._add_hash_command()
        self._add_cluster_command()
        self._add_plan_command()
        self._add_apply_command()
        self._add_report_command()

    def _add_common_arguments(self, parser):
        misc_group = parser.add_argument_group('Miscellaneous')
        misc_group.add_argument(
            '-v', '--verbose',
            action='count',
            default=0,
            help='Increase verbosity level (-v for detailed, -vv for debug)'
        )
        misc_group.add_argument(
            '--version',
            action='version',
            version=f'pixeldedup {utils.VERSION}'
        )

    def _add_command(self, name: str, help_text: str) -> argparse.ArgumentParser:
        return self.subparsers.add_parser(
            name,
            help=help_text,
            description=help_text,
            formatter_class=CustomHelpFormatter
        )

    def _add_hash_command(self):
        parser = self._add_command('hash', 'Compute perceptual fingerprints for images under ROOT')
        parser.add_argument('root', type=str, nargs='+', metavar='ROOT', help='Directories to scan for images')

        analysis_group = parser.add_argument_group('Analysis Options')
        analysis_group.add_argument(
            '--algo',
            type=str,
            choices=['ahash', 'dhash', 'phash'],
            default=utils.DEFAULT_ALGORITHM,
            help='Fingerprint algorithm. Options: ahash, dhash, phash (default: phash)'
        )
        analysis_group.add_argument(
            '--workers',
            type=workers_type,
            default=None,
            help='Number of worker processes (default: one per CPU)'
        )
        analysis_group.add_argument(
            '--recursive',
            action='store_true',
            default=True,
            help='Scan directories recursively'
        )
        analysis_group.add_argument(
            '--no-recursive',
            dest='recursive',
            action='store_false',
            help='Do not scan directories recursively'
        )

        cache_group = parser.add_argument_group('Cache Options')
        cache_group.add_argument(
            '--no-cache',
            dest='use_cache',
            action='store_false',
            help='Do not read or write the fingerprint cache'
        )
        cache_group.add_argument(
            '--clear-cache',
            action='store_true',
            help='Clear cache before running'
        )
        cache_group.add_argument(
            '--cache-dir',
            type=str,
            help='Cache directory (default: ~/.cache/pixeldedup)'
        )

        parser.add_argument('--out', type=str, default='index.csv', help='Output index file (default: index.csv)')

    def _add_cluster_command(self):
        parser = self._add_command('cluster', 'Cluster near-duplicates from an index file')
        parser.add_argument('index', type=str, metavar='INDEX', help="Index file produced by 'hash' (path,fingerprint)")
        parser.add_argument(
            '--radius',
            type=radius_type,
            default=utils.DEFAULT_RADIUS,
            help=f'Maximum Hamming distance between linked images, 0..64 (default: {utils.DEFAULT_RADIUS})'
        )
        parser.add_argument(
            '--include-singletons',
            action='store_true',
            help='Also write clusters that have a single member'
        )
        parser.add_argument('--out', type=str, default='clusters.csv', help='Output clusters file (default: clusters.csv)')

    def _add_plan_command(self):
        parser = self._add_command('plan', 'Create a deduplication plan from a clusters file')
        parser.add_argument('clusters', type=str, metavar='CLUSTERS', help='Clusters file (clusterId,path)')
        parser.add_argument(
            '--include-singletons',
            action='store_true',
            help='Also plan clusters with a single member (always KEEP)'
        )
        parser.add_argument('--out', type=str, default='plan.csv', help='Output plan file (default: plan.csv)')

    def _add_apply_command(self):
        parser = self._add_command('apply', 'Apply a plan: move DELETE files to quarantine')
        parser.add_argument('plan', type=str, metavar='PLAN', help='Plan file (clusterId,action,path,reason)')
        parser.add_argument(
            '--quarantine',
            type=str,
            default='./quarantine',
            help='Folder receiving the duplicates (default: ./quarantine)'
        )
        parser.add_argument(
            '--hardlink',
            action='store_true',
            help='Replace moved files with hard links to the keeper when on the same filesystem'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only log what would be moved'
        )

    def _add_report_command(self):
        parser = self._add_command('report', 'Summarize a plan')
        parser.add_argument('plan', type=str, metavar='PLAN', help='Plan file (clusterId,action,path,reason)')
        parser.add_argument(
            '--output-format',
            type=str,
            choices=['text', 'json', 'csv'],
            default='text',
            help='Output format for report. Options: text, json, csv (default: text)'
        )
        parser.add_argument(
            '--output-file',
            type=str,
            help='Output file path (default: stdout)'
        )

    def parse_args(self, argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
        """Parse command line arguments."""
        args = self.parser.parse_args(argv)

        # Convert path arguments to Path objects
        for name in ('index', 'clusters', 'plan', 'out', 'quarantine', 'output_file', 'cache_dir'):
            value = getattr(args, name, None)
            if value:
                setattr(args, name, Path(value))
        if getattr(args, 'root', None):
            args.root = [Path(d).resolve() for d in args.root]

        return args

"""
Common utilities for image deduplication.
"""

import logging
from pathlib import Path
from typing import List, Optional, Set

# Add custom VERBOSE level between INFO and DEBUG
VERBOSE = 15  # Between INFO (20) and DEBUG (10)
logging.addLevelName(VERBOSE, "VERBOSE")

def setup_logging(verbose_level: int = 0) -> logging.Logger:
    """Set up logging with configurable verbosity."""
    logging.basicConfig(
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger = logging.getLogger('pixeldedup')

    if verbose_level == 0:
        log_level = logging.INFO
    elif verbose_level == 1:
        log_level = VERBOSE
    else:
        log_level = logging.DEBUG

    logger.setLevel(log_level)

    if verbose_level >= 1:
        logger.log(VERBOSE, "Verbose logging enabled")
        if verbose_level >= 2:
            logger.debug("Debug logging enabled")

    return logger

def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.2f} PB"

def find_files(directories: List[Path],
               extensions: Set[str],
               recursive: bool = True,
               logger: logging.Logger = None) -> List[Path]:
    """Find files with specified extensions in given directories.

    The result is sorted so that every run over an unchanged tree sees
    the files in the same order.
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    found_files = []

    for directory in directories:
        if not directory.exists():
            logger.warning(f"Directory does not exist: {directory}")
            continue

        logger.info(f"Scanning directory: {directory}")

        if recursive:
            file_iterator = directory.rglob('*')
        else:
            file_iterator = directory.glob('*')

        for file_path in file_iterator:
            if file_path.is_file() and file_path.suffix.lower() in extensions:
                found_files.append(file_path)

    found_files.sort(key=lambda p: str(p))
    logger.info(f"Found {len(found_files)} files")
    return found_files

def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, create if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path

def unique_destination(target: Path, reserved: Optional[Set[Path]] = None) -> Path:
    """Return ``target`` or the first free ``stem_N.suffix`` sibling.

    Paths in ``reserved`` count as taken even if nothing exists there yet.
    """
    reserved = reserved or set()
    candidate = target
    counter = 1
    while candidate.exists() or candidate in reserved:
        # Path(".hidden").suffix is empty, giving ".hidden_1"
        candidate = target.with_name(f"{target.stem}_{counter}{target.suffix}")
        counter += 1
    return candidate

# Constants
VERSION = "1.0.0"

DEFAULT_ALGORITHM = "phash"
DEFAULT_RADIUS = 10
MAX_RADIUS = 64

IMAGE_EXTENSIONS = {
    '.jpg', '.jpeg', '.png', '.gif', '.webp', '.tiff', '.bmp',
    '.jfif'
}

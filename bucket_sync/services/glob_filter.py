"""
Per-file include/exclude decisions from glob patterns and a size limit.
"""
import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Union

from loguru import logger

from ..models.config import FilterConfig
from ..models.data_models import FilteringStats

PathLike = Union[str, Path]


def matches_pattern(path_str: str, file_name: str, pattern: str) -> bool:
    """
    Check a relative path and its file name against one pattern.

    Patterns without ``*`` or ``?`` also match as a substring of either string,
    so a bare directory name such as ``node_modules`` excludes everything below it.
    """
    if fnmatchcase(path_str, pattern) or fnmatchcase(file_name, pattern):
        return True

    if '*' not in pattern and '?' not in pattern:
        return pattern in path_str or pattern in file_name

    return False


def _relative_path(file_path: PathLike, root: PathLike) -> str:
    try:
        relative = os.path.relpath(os.fspath(file_path), os.fspath(root))
    except ValueError:
        # Different drives on Windows
        relative = os.fspath(file_path)

    if relative in (os.curdir, os.pardir) or relative.startswith(os.pardir + os.sep):
        relative = os.fspath(file_path)

    return relative.replace('\\', '/')


def should_include(file_path: PathLike, root: PathLike, config: FilterConfig) -> bool:
    """
    Decide whether a file is uploaded.

    Args:
        file_path: The file being considered
        root: Directory the pattern-matching path is made relative to
        config: Validated filter configuration

    Returns:
        True if the file should be uploaded, False if it is filtered out
    """
    if not config.enabled:
        return True

    try:
        if os.path.getsize(file_path) > config.max_file_size:
            return False
    except OSError:
        pass

    path_str = _relative_path(file_path, root)
    file_name = os.path.basename(os.fspath(file_path).replace('\\', '/').rstrip('/'))

    # Exclusion wins over inclusion
    for pattern in config.exclude_patterns:
        if matches_pattern(path_str, file_name, pattern):
            return False

    if config.include_patterns:
        return any(matches_pattern(path_str, file_name, pattern)
                   for pattern in config.include_patterns)

    return True


def get_filtering_stats(directory: PathLike, config: FilterConfig) -> FilteringStats:
    """Count the files and bytes under a directory that the filter keeps and drops."""
    stats = FilteringStats()

    for dirpath, _, filenames in os.walk(directory):
        for name in filenames:
            path = os.path.join(dirpath, name)
            try:
                size = os.path.getsize(path)
            except OSError as e:
                logger.warning(f"Skipping unreadable file {path}: {e}")
                continue

            stats.total_files += 1
            stats.total_size += size
            if should_include(path, directory, config):
                stats.included_files += 1
            else:
                stats.excluded_files += 1
                stats.excluded_size += size

    return stats

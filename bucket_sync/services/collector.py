"""
Expansion of path mappings into per-file upload tasks.
"""
import os
import re
import stat
from typing import Iterable, Iterator, Optional

from loguru import logger

from ..models.config import FilterConfig
from ..models.data_models import CollectionResult, FileTask, PathMapping
from .glob_filter import should_include
from .prefix_resolver import PrefixResolver, get_preview_prefix

_REPEATED_SLASHES = re.compile(r'/{2,}')


def build_destination_key(prefix: str, relative_path: str, file_name: str = '') -> str:
    """
    Join a prefix and a relative path into an object key.

    Backslashes become forward slashes, repeated slashes collapse, and the key
    never starts with a slash. An empty relative path falls back to the file name.
    """
    relative = relative_path.replace('\\', '/').strip('/')
    if not relative:
        relative = file_name.replace('\\', '/').strip('/')

    clean_prefix = prefix.replace('\\', '/').strip('/')
    key = f"{clean_prefix}/{relative}" if clean_prefix else relative
    return _REPEATED_SLASHES.sub('/', key).lstrip('/')


class LocalTreeCollector:
    """Walks mapped local roots and turns every surviving file into a FileTask."""

    def __init__(self, filter_config: FilterConfig, resolver: Optional[PrefixResolver] = None):
        self.filter_config = filter_config
        self.resolver = resolver

    def collect(self, mappings: Iterable[PathMapping]) -> CollectionResult:
        """
        Expand mappings into upload tasks.

        A mapped file lands exactly at its prefix. Files under a mapped folder
        land at ``{prefix}/{path relative to the folder}``. Missing roots are
        recorded and skipped.
        """
        result = CollectionResult()

        for mapping in mappings:
            local_path = mapping.local_path

            if os.path.isfile(local_path):
                self._collect_file(mapping, result)
            elif os.path.isdir(local_path):
                self._collect_directory(mapping, result)
            else:
                logger.warning(f"Local path does not exist, skipping: {local_path}")
                result.missing_paths.append(local_path)

        logger.info(f"Collected {len(result.tasks)} files for upload, "
                    f"{result.filtered_count} filtered out")
        return result

    def _prefix_for(self, mapping: PathMapping) -> str:
        explicit = mapping.explicit_prefix
        if explicit is not None:
            return explicit
        if self.resolver is not None:
            return self.resolver.resolve(mapping.local_path)
        return get_preview_prefix(os.path.abspath(mapping.local_path))

    def _collect_file(self, mapping: PathMapping, result: CollectionResult) -> None:
        local_path = mapping.local_path
        parent = os.path.dirname(os.path.abspath(local_path))

        if not should_include(local_path, parent, self.filter_config):
            result.filtered_count += 1
            logger.info(f"Filtered out file: {local_path}")
            return

        prefix = self._prefix_for(mapping)
        # The prefix is the whole key for a lone file
        key = build_destination_key('', prefix, os.path.basename(local_path))
        result.mapping_lines.append(f"File: {local_path} -> S3: {key}")
        result.tasks.append(FileTask(local_path=local_path, destination_key=key))

    def _collect_directory(self, mapping: PathMapping, result: CollectionResult) -> None:
        root = mapping.local_path
        prefix = self._prefix_for(mapping)
        result.mapping_lines.append(f"Folder: {root} -> S3 Folder: {prefix}")

        for file_path in self._walk_regular_files(root):
            if not should_include(file_path, root, self.filter_config):
                result.filtered_count += 1
                logger.info(f"Filtered out file: {file_path}")
                continue

            relative = os.path.relpath(file_path, root)
            key = build_destination_key(prefix, relative, os.path.basename(file_path))
            logger.debug(f"Map local file: {file_path} -> key: {key}")
            result.tasks.append(FileTask(local_path=file_path, destination_key=key))

    @staticmethod
    def _walk_regular_files(root: str) -> Iterator[str]:
        def on_error(error: OSError) -> None:
            logger.warning(f"Skipping unreadable path {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames.sort()
            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                try:
                    mode = os.lstat(path).st_mode
                except OSError as e:
                    logger.warning(f"Skipping unreadable file {path}: {e}")
                    continue
                if stat.S_ISREG(mode):
                    yield path

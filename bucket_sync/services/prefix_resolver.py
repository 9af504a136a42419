"""
Destination prefix inference against the bucket's existing layout.

A folder mapped without an explicit destination gets a prefix built from the
last few meaningful segments of its local path, unless a more fitting folder
already exists in the bucket. Bucket folders are looked up through a
process-wide cache holding one shallow listing per bucket.
"""
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Union

from loguru import logger

from ..models.config import DEFAULT_CACHE_TTL_SECS
from ..models.data_models import PrefixCacheEntry

PathLike = Union[str, Path]

# Generic folder names that say nothing about the content
GENERIC_SEGMENTS = {
    'users',
    'home',
    'desktop',
    'documents',
    'downloads',
    'appdata',
    'local',
    'temp',
    'admin',
}

# Segments whose next segment is an account name
ACCOUNT_PARENTS = {'users', 'home'}

LISTING_MAX_KEYS = 1000


def _split_segments(path: PathLike) -> List[str]:
    """Split a path on either separator, dropping empty, relative and drive segments."""
    normalized = str(path).replace('\\', '/')
    return [s.strip() for s in normalized.split('/')
            if s.strip() and s.strip() not in ('.', '..') and ':' not in s]


def normalize_path_parts(path: PathLike) -> List[str]:
    """Split a local path into the segments that are meaningful as a bucket prefix."""
    parts = []
    skip_account = False
    for segment in _split_segments(path):
        lowered = segment.lower()
        if skip_account:
            skip_account = False
            continue
        if lowered in GENERIC_SEGMENTS:
            skip_account = lowered in ACCOUNT_PARENTS
            continue
        parts.append(segment)
    return parts


def get_preview_prefix(path: PathLike) -> str:
    """Offline prefix guess: the last one to three meaningful path segments."""
    parts = normalize_path_parts(path)
    if not parts:
        return Path(str(path).replace('\\', '/')).name

    return '/'.join(parts[-3:])


class PrefixCache:
    """
    Known folder prefixes per bucket, refreshed from a shallow listing once stale.

    One lock guards the whole table and is held across the staleness check and
    the refresh, so concurrent lookups for a bucket trigger a single listing.
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL_SECS,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, PrefixCacheEntry] = {}
        self._lock = threading.Lock()

    def contains(self, client: Any, bucket: str, prefix: str) -> bool:
        """Check whether a folder prefix exists in the bucket."""
        wanted = prefix.strip('/')
        with self._lock:
            entry = self._current_entry(client, bucket)
            return entry is not None and wanted in entry.known_prefixes

    def get_prefixes(self, client: Any, bucket: str) -> Set[str]:
        """Return the known prefixes of a bucket, refreshing the entry when absent or expired."""
        with self._lock:
            entry = self._current_entry(client, bucket)
            return set(entry.known_prefixes) if entry else set()

    def get_entry(self, bucket: str) -> Optional[PrefixCacheEntry]:
        with self._lock:
            return self._entries.get(bucket)

    def _current_entry(self, client: Any, bucket: str) -> Optional[PrefixCacheEntry]:
        # Caller holds the lock
        entry = self._entries.get(bucket)
        if entry is None or entry.is_expired(self.ttl, self._clock()):
            entry = self._refresh(client, bucket, entry)
        return entry

    def _refresh(self, client: Any, bucket: str,
                 stale: Optional[PrefixCacheEntry]) -> Optional[PrefixCacheEntry]:
        try:
            listing = client.list_objects_shallow(bucket, delimiter='/', max_keys=LISTING_MAX_KEYS)
        except Exception as e:
            logger.warning(f"Could not list bucket {bucket} for prefix lookup, "
                           f"using {'stale' if stale else 'empty'} prefix set: {e}")
            return stale

        prefixes = set()
        for common_prefix in listing.common_prefixes:
            prefixes.add(common_prefix.strip('/'))
        for key in listing.object_keys:
            parent, sep, _ = key.rpartition('/')
            if sep:
                prefixes.add(parent.strip('/'))
        prefixes.discard('')

        entry = PrefixCacheEntry(bucket=bucket, known_prefixes=prefixes, captured_at=self._clock())
        self._entries[bucket] = entry
        logger.debug(f"Cached {len(prefixes)} prefixes for bucket {bucket}")
        return entry


GLOBAL_PREFIX_CACHE = PrefixCache()


class PrefixResolver:
    """Works out the bucket prefix for a local path mapped without an explicit destination."""

    def __init__(self, client: Optional[Any], bucket: str,
                 cache: Optional[PrefixCache] = None,
                 base_path: Optional[PathLike] = None):
        """
        Args:
            client: Bucket access handle, or None to resolve offline
            bucket: Bucket the prefixes are looked up in
            cache: Prefix cache to use, the process-wide one by default
            base_path: Local folder whose layout is mirrored verbatim in the bucket
        """
        self.client = client
        self.bucket = bucket
        self.cache = cache if cache is not None else GLOBAL_PREFIX_CACHE
        self.base_path = Path(base_path) if base_path else None

    def resolve(self, local_path: PathLike) -> str:
        """Return the destination prefix for a local file or folder. Never raises."""
        local_path = os.path.abspath(local_path)
        relative = self._relative_to_base(local_path)
        if relative is not None:
            return relative

        preview = get_preview_prefix(local_path)
        if self.client is None:
            return preview

        return self.find_best_prefix(local_path, preview)

    def find_best_prefix(self, local_path: PathLike, preview: Optional[str] = None) -> str:
        """Prefer the most specific path suffix that already exists as a bucket folder."""
        if preview is None:
            preview = get_preview_prefix(local_path)

        parts = _split_segments(local_path)
        preview_segments = preview.split('/')

        for i in range(len(parts)):
            candidate = '/'.join(parts[i:])
            if not self.cache.contains(self.client, self.bucket, candidate):
                continue

            # A lone folder name must also appear in the preview to count
            if i == len(parts) - 1 and '/' in preview and candidate not in preview_segments:
                continue

            logger.info(f"Matched existing bucket prefix: '{candidate}'")
            return candidate

        logger.info(f"Using prefix: '{preview}'")
        return preview

    def _relative_to_base(self, local_path: PathLike) -> Optional[str]:
        if self.base_path is None:
            return None

        path = Path(os.path.realpath(local_path))
        try:
            relative = path.relative_to(os.path.realpath(self.base_path))
        except ValueError:
            return None

        relative_str = relative.as_posix().strip('/')
        if not relative_str or relative_str == '.':
            return path.name
        return relative_str

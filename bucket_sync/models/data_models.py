"""
Core data models for the bucket sync service.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional, Set, Tuple


@dataclass(frozen=True)
class PathMapping:
    """A local file or folder and the bucket prefix it should land under."""
    local_path: str
    destination_prefix: Optional[str] = None

    @property
    def explicit_prefix(self) -> Optional[str]:
        """The caller-supplied prefix, or None when it is blank."""
        if self.destination_prefix is None or not self.destination_prefix.strip():
            return None
        return self.destination_prefix.strip()


@dataclass(frozen=True)
class FileTask:
    """A single local file scheduled for upload."""
    local_path: str
    destination_key: str


@dataclass
class PrefixCacheEntry:
    """Known folder prefixes of one bucket as of the last successful listing."""
    bucket: str
    known_prefixes: Set[str]
    captured_at: float

    def is_expired(self, ttl_secs: float, now: float) -> bool:
        return now - self.captured_at > ttl_secs


@dataclass
class BucketListing:
    """Result of one shallow, delimiter-based listing call."""
    common_prefixes: List[str] = field(default_factory=list)
    object_keys: List[str] = field(default_factory=list)


@dataclass
class CollectionResult:
    """Upload tasks produced from a set of path mappings."""
    tasks: List[FileTask] = field(default_factory=list)
    filtered_count: int = 0
    mapping_lines: List[str] = field(default_factory=list)
    missing_paths: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SyncOutcome:
    """Final result of one sync run."""
    total: int
    succeeded: int
    failed: Tuple[str, ...] = ()
    filtered: int = 0
    skipped: Tuple[str, ...] = ()
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        if self.success:
            return f"{self.succeeded}/{self.total} succeeded"
        return f"{self.succeeded}/{self.total} succeeded, {len(self.failed)} errors"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            'total': self.total,
            'succeeded': self.succeeded,
            'failed': list(self.failed),
            'filtered': self.filtered,
            'skipped': list(self.skipped),
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass
class FilteringStats:
    """How many files and bytes a filter configuration keeps and drops."""
    total_files: int = 0
    included_files: int = 0
    excluded_files: int = 0
    total_size: int = 0
    excluded_size: int = 0

    def merge(self, other: 'FilteringStats') -> None:
        self.total_files += other.total_files
        self.included_files += other.included_files
        self.excluded_files += other.excluded_files
        self.total_size += other.total_size
        self.excluded_size += other.excluded_size

    def exclusion_rate(self) -> float:
        if self.total_files == 0:
            return 0.0
        return self.excluded_files / self.total_files

    def size_savings(self) -> float:
        if self.total_size == 0:
            return 0.0
        return self.excluded_size / self.total_size

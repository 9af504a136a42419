"""
Configuration classes for the bucket sync service.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from ..exceptions import ConfigurationError
from ..utils import parse_patterns, validate_glob_patterns

DEFAULT_CONCURRENCY = 50
DEFAULT_CACHE_TTL_SECS = 300
DEFAULT_MAX_FILE_SIZE_MB = 100
MAX_FILE_SIZE_LIMIT_MB = 10240
MB = 1024 * 1024

DEFAULT_EXCLUDE_PATTERNS = [
    'node_modules',
    '.git',
    '.DS_Store',
    'Thumbs.db',
    '__pycache__',
    '*.tmp',
    '*.swp',
]


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    """Read an integer tunable, falling back to the default when missing or invalid."""
    try:
        value = int(os.getenv(name, ''))
    except ValueError:
        return default
    return value if value >= minimum else default


@dataclass
class S3Config:
    """Configuration for the S3 service connection."""
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    region: Optional[str] = None
    session_token: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str = 'SYNC') -> 'S3Config':
        """Create S3Config from environment variables with given prefix."""
        return cls(
            endpoint=os.getenv(f'{prefix}_S3_ENDPOINT', ''),
            access_key=os.getenv(f'{prefix}_S3_ACCESS_KEY', ''),
            secret_key=os.getenv(f'{prefix}_S3_SECRET_KEY', ''),
            bucket=os.getenv(f'{prefix}_S3_BUCKET', ''),
            region=os.getenv(f'{prefix}_S3_REGION'),
            session_token=os.getenv(f'{prefix}_S3_SESSION_TOKEN') or None
        )


@dataclass
class FilterConfig:
    """Include/exclude rules applied to every local file before upload."""
    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    include_patterns: List[str] = field(default_factory=list)
    max_file_size: int = DEFAULT_MAX_FILE_SIZE_MB * MB
    enabled: bool = True

    def validate(self) -> None:
        """
        Reject malformed patterns and size bounds before a run starts.

        Raises:
            ConfigurationError: If any pattern or the size limit is invalid
        """
        if self.max_file_size <= 0 or self.max_file_size > MAX_FILE_SIZE_LIMIT_MB * MB:
            raise ConfigurationError(
                f"Max file size must be between 1 and {MAX_FILE_SIZE_LIMIT_MB} MB"
            )

        invalid_exclude = validate_glob_patterns(self.exclude_patterns)
        if invalid_exclude:
            raise ConfigurationError(f"Invalid exclude patterns: {', '.join(invalid_exclude)}")

        invalid_include = validate_glob_patterns(self.include_patterns)
        if invalid_include:
            raise ConfigurationError(f"Invalid include patterns: {', '.join(invalid_include)}")

    @classmethod
    def from_text(cls, exclude_text: str, include_text: str, max_file_size_mb: str,
                  enabled: bool = True) -> 'FilterConfig':
        """
        Build a validated FilterConfig from comma-separated pattern lists.

        Args:
            exclude_text: Comma-separated exclude globs
            include_text: Comma-separated include globs
            max_file_size_mb: Size limit in megabytes (1..10240)
            enabled: Whether filtering is applied at all

        Raises:
            ConfigurationError: If the size or any pattern is invalid
        """
        try:
            size_mb = int(str(max_file_size_mb).strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Max file size must be a number from 1 to {MAX_FILE_SIZE_LIMIT_MB} MB"
            ) from e

        if size_mb <= 0 or size_mb > MAX_FILE_SIZE_LIMIT_MB:
            raise ConfigurationError(
                f"Max file size must be a number from 1 to {MAX_FILE_SIZE_LIMIT_MB} MB"
            )

        config = cls(
            exclude_patterns=parse_patterns(exclude_text),
            include_patterns=parse_patterns(include_text),
            max_file_size=size_mb * MB,
            enabled=enabled
        )
        config.validate()
        return config

    @classmethod
    def from_env(cls) -> 'FilterConfig':
        """Create FilterConfig from environment variables, keeping defaults for unset ones."""
        default = cls()
        exclude_text = os.getenv('SYNC_EXCLUDE_PATTERNS')
        include_text = os.getenv('SYNC_INCLUDE_PATTERNS')
        return cls.from_text(
            exclude_text=exclude_text if exclude_text is not None else ', '.join(default.exclude_patterns),
            include_text=include_text or '',
            max_file_size_mb=os.getenv('SYNC_MAX_FILE_SIZE_MB', str(DEFAULT_MAX_FILE_SIZE_MB)),
            enabled=os.getenv('SYNC_ENABLE_FILTERING', 'true').lower() == 'true'
        )


@dataclass
class SyncConfig:
    """Main configuration for the sync service."""
    s3: S3Config
    concurrency: int = DEFAULT_CONCURRENCY
    cache_ttl: int = DEFAULT_CACHE_TTL_SECS
    log_path: Optional[str] = None
    base_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'SyncConfig':
        """Create SyncConfig from environment variables."""
        return cls(
            s3=S3Config.from_env('SYNC'),
            concurrency=_env_int('S3_SYNC_CONCURRENCY', DEFAULT_CONCURRENCY, minimum=1),
            cache_ttl=_env_int('S3_CACHE_TTL_SECS', DEFAULT_CACHE_TTL_SECS),
            log_path=os.getenv('SYNC_LOG_PATH') or None,
            base_path=os.getenv('SYNC_BASE_PATH') or None
        )

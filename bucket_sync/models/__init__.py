"""
Models package for the bucket sync service.
"""
from .data_models import (
    PathMapping,
    FileTask,
    PrefixCacheEntry,
    BucketListing,
    CollectionResult,
    SyncOutcome,
    FilteringStats
)
from .config import S3Config, FilterConfig, SyncConfig

__all__ = [
    'PathMapping',
    'FileTask',
    'PrefixCacheEntry',
    'BucketListing',
    'CollectionResult',
    'SyncOutcome',
    'FilteringStats',
    'S3Config',
    'FilterConfig',
    'SyncConfig'
]

"""
Sync orchestrator pushing local files and folders into a bucket.
"""
import os
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from loguru import logger

from ..clients.s3_manager import S3Manager
from ..exceptions import ConfigurationError
from ..models.config import FilterConfig, SyncConfig
from ..models.data_models import FilteringStats, PathMapping, SyncOutcome
from ..utils import validate_bucket_name
from .collector import LocalTreeCollector
from .glob_filter import get_filtering_stats, should_include
from .prefix_resolver import GLOBAL_PREFIX_CACHE, PrefixCache, PrefixResolver
from .session_logger import SessionLogger
from .status import StatusSink
from .upload_scheduler import UploadScheduler


class SyncService:
    """
    Runs a sync: collect files, resolve destinations, upload, write the session log.

    Enumeration and prefix resolution happen sequentially before the upload
    phase; only uploads run in parallel.
    """

    def __init__(self, config: SyncConfig, client: Optional[Any] = None,
                 status_sink: Optional[StatusSink] = None,
                 cache: Optional[PrefixCache] = None):
        """
        Initialize sync service with configuration.

        Args:
            config: SyncConfig with connection and tuning settings
            client: Bucket access handle, an S3Manager is built from config when omitted
            status_sink: Receives progress lines, logged when omitted
            cache: Prefix cache, the process-wide one by default
        """
        self.config = config
        self.bucket = config.s3.bucket
        self.client = client if client is not None else S3Manager(config.s3)
        self.status_sink = status_sink or StatusSink()
        self.cache = cache if cache is not None else GLOBAL_PREFIX_CACHE

        logger.info(f"SyncService initialized for bucket {self.bucket}")

    def run_sync(self, mappings: Sequence[PathMapping],
                 filter_config: Optional[FilterConfig] = None) -> SyncOutcome:
        """
        Upload every mapped file to the bucket.

        Args:
            mappings: Local files/folders with optional destination prefixes
            filter_config: Filter rules, defaults when omitted

        Returns:
            SyncOutcome of the run

        Raises:
            ConfigurationError: If the bucket, filters or mappings are invalid
        """
        self.status_sink.report("Initializing sync...", 0.0, False)
        filter_config = filter_config or FilterConfig()

        try:
            self._validate(mappings, filter_config)
        except ConfigurationError as e:
            logger.error(f"Sync cannot start: {e}")
            self.status_sink.report(str(e), 0.0, True)
            raise

        self.cache.ttl = self.config.cache_ttl
        collector = LocalTreeCollector(filter_config, self._make_resolver())
        collection = collector.collect(mappings)

        for missing in collection.missing_paths:
            self.status_sink.report(f"Path not found, skipped: {missing}", 0.0, True)

        if collection.filtered_count > 0:
            self.status_sink.report(
                f"Filtered {collection.filtered_count} files, "
                f"preparing to upload {len(collection.tasks)} files...",
                0.05,
                False
            )

        session_log = self._make_session_logger()
        if session_log is not None and collection.mapping_lines:
            session_log.start_session(self.bucket, collection.mapping_lines)

        scheduler = UploadScheduler(self.client, self.bucket, self.status_sink,
                                    concurrency=self.config.concurrency)
        outcome = scheduler.run(collection.tasks)
        outcome = replace(outcome, filtered=collection.filtered_count,
                          skipped=tuple(collection.missing_paths))

        if session_log is not None:
            session_log.finish_session(self.bucket, outcome)

        if outcome.success:
            logger.info(f"Sync completed - {outcome.summary()}")
        else:
            logger.warning(f"Sync completed with errors - {outcome.summary()}")
        return outcome

    def preview_filtering(self, mappings: Sequence[PathMapping],
                          filter_config: Optional[FilterConfig] = None) -> FilteringStats:
        """Count the files and bytes the filter would keep and drop, without uploading."""
        filter_config = filter_config or FilterConfig()
        filter_config.validate()

        total = FilteringStats()
        for mapping in mappings:
            path = mapping.local_path
            if os.path.isdir(path):
                total.merge(get_filtering_stats(path, filter_config))
            elif os.path.isfile(path):
                try:
                    size = os.path.getsize(path)
                except OSError as e:
                    logger.warning(f"Skipping unreadable file {path}: {e}")
                    continue
                total.total_files += 1
                total.total_size += size
                if should_include(path, os.path.dirname(os.path.abspath(path)), filter_config):
                    total.included_files += 1
                else:
                    total.excluded_files += 1
                    total.excluded_size += size

        return total

    def resolve_prefix(self, local_path: str) -> str:
        """Show the destination prefix a mapping without explicit destination would get."""
        self.cache.ttl = self.config.cache_ttl
        return self._make_resolver().resolve(local_path)

    def test_connection(self) -> bool:
        """Check that the bucket is reachable."""
        try:
            self.client.head_bucket(self.bucket)
            logger.info(f"Bucket {self.bucket} is reachable")
            return True
        except Exception as e:
            logger.error(f"Bucket {self.bucket} is not reachable: {e}")
            return False

    def get_status(self) -> Dict[str, Any]:
        """Current settings and cache state."""
        entry = self.cache.get_entry(self.bucket)
        return {
            'bucket': self.bucket,
            'concurrency': self.config.concurrency,
            'cache_ttl': self.config.cache_ttl,
            'log_path': self.config.log_path,
            'base_path': self.config.base_path,
            'cached_prefixes': len(entry.known_prefixes) if entry else 0,
            'timestamp': datetime.now().isoformat()
        }

    def _validate(self, mappings: Sequence[PathMapping], filter_config: FilterConfig) -> None:
        bucket_error = validate_bucket_name(self.bucket)
        if bucket_error:
            raise ConfigurationError(bucket_error)

        if self.config.concurrency < 1:
            raise ConfigurationError(
                f"Concurrency must be at least 1, got {self.config.concurrency}")
        if self.config.cache_ttl < 0:
            raise ConfigurationError(
                f"Cache TTL must not be negative, got {self.config.cache_ttl}")

        filter_config.validate()

        if not mappings:
            raise ConfigurationError("No files or folders to upload")

    def _make_resolver(self) -> PrefixResolver:
        return PrefixResolver(self.client, self.bucket, cache=self.cache,
                              base_path=self.config.base_path)

    def _make_session_logger(self) -> Optional[SessionLogger]:
        if not self.config.log_path:
            return None
        return SessionLogger(self.config.log_path)

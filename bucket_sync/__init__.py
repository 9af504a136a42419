"""
Bucket Sync - push local files and folders into an S3 bucket.
"""

from .services.sync_service import SyncService
from .models.config import SyncConfig, S3Config, FilterConfig
from .models.data_models import PathMapping, FileTask, SyncOutcome
from .exceptions import ConfigurationError, UploadFailure

__version__ = "1.0.0"
__all__ = [
    "SyncService",
    "SyncConfig",
    "S3Config",
    "FilterConfig",
    "PathMapping",
    "FileTask",
    "SyncOutcome",
    "ConfigurationError",
    "UploadFailure"
]

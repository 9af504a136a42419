"""
Main entry point for the bucket sync tool.
"""
import sys
import json
from pathlib import Path
from typing import List
from loguru import logger

from .exceptions import ConfigurationError
from .models.config import SyncConfig, FilterConfig
from .models.data_models import PathMapping
from .services.status import ConsoleStatusSink
from .services.sync_service import SyncService


def setup_logging():
    """Configure logging for the sync tool."""
    # Remove default logger
    logger.remove()

    # Add console logger with appropriate format
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="INFO"
    )

    # Add file logger for debugging
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    logger.add(
        "logs/bucket_sync.log",
        rotation="10 MB",
        retention="7 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG"
    )


def parse_mappings(args: List[str]) -> List[PathMapping]:
    """Turn ``LOCAL_PATH[=PREFIX]`` arguments into path mappings."""
    mappings = []
    for arg in args:
        local_path, _, prefix = arg.partition('=')
        mappings.append(PathMapping(local_path=local_path, destination_prefix=prefix or None))
    return mappings


def run_sync(args: List[str]) -> int:
    """Run a sync of the given paths and return the process exit code."""
    mappings = parse_mappings(args)
    config = SyncConfig.from_env()
    filter_config = FilterConfig.from_env()
    logger.info(f"Loaded configuration - Bucket: {config.s3.bucket}, "
                f"concurrency: {config.concurrency}, cache TTL: {config.cache_ttl}s")

    sync_service = SyncService(config, status_sink=ConsoleStatusSink())
    outcome = sync_service.run_sync(mappings, filter_config)

    logger.info(f"Sync Results: {json.dumps(outcome.to_dict(), indent=2, default=str)}")
    return 0 if outcome.success else 1


def run_preview(args: List[str]) -> int:
    """Show how many files the current filter keeps."""
    config = SyncConfig.from_env()
    sync_service = SyncService(config)
    stats = sync_service.preview_filtering(parse_mappings(args), FilterConfig.from_env())

    logger.info(
        f"Total: {stats.total_files} files | Included: {stats.included_files} files | "
        f"Excluded: {stats.excluded_files} files"
    )
    logger.info(
        f"Total size: {stats.total_size // (1024 * 1024)} MB | "
        f"Saved: {stats.excluded_size // (1024 * 1024)} MB ({stats.exclusion_rate() * 100:.1f}%)"
    )
    return 0


def run_resolve(args: List[str]) -> int:
    """Print the destination prefix inferred for each path."""
    config = SyncConfig.from_env()
    sync_service = SyncService(config)
    for local_path in args:
        print(f"{local_path} -> {sync_service.resolve_prefix(local_path)}")
    return 0


def run_test_connection() -> int:
    config = SyncConfig.from_env()
    sync_service = SyncService(config)
    return 0 if sync_service.test_connection() else 1


def print_help():
    """Print help information for the CLI."""
    help_text = """
Bucket Sync - Command Line Interface

USAGE:
    python -m bucket_sync.main [COMMAND] [ARGS]

COMMANDS:
    sync PATH[=PREFIX] ...     Upload files/folders; PREFIX is inferred when omitted
    preview PATH ...           Show how many files the filter keeps and drops
    resolve PATH ...           Show the bucket prefix inferred for each path
    test                       Check that the bucket is reachable
    help                       Show this help message

EXAMPLES:
    # Upload a site folder into an explicit prefix
    python -m bucket_sync.main sync ./site=www/site

    # Upload and let the tool pick the prefix
    python -m bucket_sync.main sync /data/projects/app-assets

ENVIRONMENT VARIABLES:
    SYNC_S3_ENDPOINT         S3 service URL (optional)
    SYNC_S3_ACCESS_KEY       S3 access key
    SYNC_S3_SECRET_KEY       S3 secret key
    SYNC_S3_SESSION_TOKEN    S3 session token (optional)
    SYNC_S3_BUCKET           Bucket name
    SYNC_S3_REGION           Region (default: us-east-1)
    SYNC_LOG_PATH            Directory for daily session logs (optional)
    SYNC_BASE_PATH           Local folder mirrored verbatim in the bucket (optional)
    SYNC_ENABLE_FILTERING    Apply filters (default: true)
    SYNC_EXCLUDE_PATTERNS    Comma-separated exclude globs
    SYNC_INCLUDE_PATTERNS    Comma-separated include globs
    SYNC_MAX_FILE_SIZE_MB    Largest file uploaded, 1-10240 (default: 100)
    S3_SYNC_CONCURRENCY      Parallel uploads (default: 50)
    S3_CACHE_TTL_SECS        Bucket prefix cache lifetime (default: 300)
"""
    print(help_text)


def main():
    """Main entry point with command line argument handling."""
    setup_logging()

    if len(sys.argv) < 2:
        print_help()
        sys.exit(1)

    command = sys.argv[1].lower()
    args = sys.argv[2:]

    try:
        if command in ["help", "--help", "-h"]:
            print_help()
            exit_code = 0
        elif command in ["sync", "preview", "resolve"] and not args:
            logger.error(f"The {command} command needs at least one path")
            exit_code = 1
        elif command == "sync":
            exit_code = run_sync(args)
        elif command == "preview":
            exit_code = run_preview(args)
        elif command == "resolve":
            exit_code = run_resolve(args)
        elif command == "test":
            exit_code = run_test_connection()
        else:
            logger.error(f"Unknown command: {command}")
            logger.error("Use 'help' to see available commands")
            print_help()
            exit_code = 1

    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully")
        exit_code = 0
    except Exception as e:
        logger.error(f"Command failed: {str(e)}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

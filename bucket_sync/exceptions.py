"""
Exception types for the bucket sync service.
"""


class ConfigurationError(Exception):
    """Raised when a sync run cannot start because its configuration is invalid."""
    pass


class UploadFailure(Exception):
    """Raised when a single file could not be stored in the bucket."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(message)

"""
Helpers shared by the bucket sync services: content types, name and pattern validation.
"""
import mimetypes
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

DEFAULT_CONTENT_TYPE = 'application/octet-stream'

# Web assets whose registered types differ between platforms
WEB_ASSET_TYPES = {
    'woff2': 'font/woff2',
    'woff': 'font/woff',
    'ttf': 'font/ttf',
    'otf': 'font/otf',
    'eot': 'application/vnd.ms-fontobject',
    'css': 'text/css',
    'js': 'application/javascript',
    'html': 'text/html',
    'htm': 'text/html',
}

BUCKET_NAME_REGEX = re.compile(r'^[a-z0-9][a-z0-9.-]*[a-z0-9]$')


def get_mime_type(path: Union[str, Path]) -> str:
    """Determine the content type of a file from its extension."""
    extension = Path(path).suffix.lstrip('.').lower()
    if extension in WEB_ASSET_TYPES:
        return WEB_ASSET_TYPES[extension]

    mime_type, _ = mimetypes.guess_type(str(path), strict=False)
    return mime_type or DEFAULT_CONTENT_TYPE


def validate_bucket_name(name: str) -> Optional[str]:
    """
    Check a bucket name against the S3 naming rules.

    Returns:
        An error message if the name is invalid, None otherwise
    """
    trimmed = name.strip() if name else ''
    if not trimmed:
        return "Bucket name cannot be empty"

    if len(trimmed) < 3 or len(trimmed) > 63:
        return "Bucket name must be between 3 and 63 characters long"

    if not BUCKET_NAME_REGEX.match(trimmed):
        return ("Invalid characters in bucket name (only a-z, 0-9, . and - allowed, "
                "must start/end with letter/digit)")

    if '..' in trimmed:
        return "Bucket name cannot contain consecutive periods"

    if trimmed.startswith('xn--') or trimmed.startswith('sthree-'):
        return "Bucket name cannot start with 'xn--' or 'sthree-'"

    if trimmed.endswith('-s3alias') or trimmed.endswith('--ol-s3'):
        return "Bucket name cannot end with '-s3alias' or '--ol-s3'"

    if all(c.isdigit() or c == '.' for c in trimmed) and len(trimmed.split('.')) == 4:
        return "Bucket name cannot be formatted as an IP address"

    return None


def validate_credentials(access_key: str, secret_key: str, bucket: str) -> Optional[str]:
    """Return an error message when the credentials or bucket are unusable."""
    if not access_key or not access_key.strip():
        return "Access key cannot be empty"
    if not secret_key or not secret_key.strip():
        return "Secret key cannot be empty"
    return validate_bucket_name(bucket)


def parse_patterns(text: str) -> List[str]:
    """Split a comma-separated pattern list, dropping blank entries."""
    if not text:
        return []
    return [part.strip() for part in text.split(',') if part.strip()]


def is_valid_glob_pattern(pattern: str) -> bool:
    """
    Check that a glob pattern is well formed.

    Rejected: empty patterns, character classes without a closing ``]``,
    and ``**`` that is not a whole path component.
    """
    if not pattern:
        return False

    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == '*':
            run = 1
            while i + run < n and pattern[i + run] == '*':
                run += 1
            if run > 2:
                return False
            if run == 2:
                starts_component = i == 0 or pattern[i - 1] == '/'
                ends_component = i + 2 == n or pattern[i + 2] == '/'
                if not (starts_component and ends_component):
                    return False
            i += run
        elif char == '[':
            j = i + 1
            if j < n and pattern[j] == '!':
                j += 1
            # A leading ']' is a literal member of the class
            if j < n and pattern[j] == ']':
                j += 1
            close = pattern.find(']', j)
            if close == -1:
                return False
            i = close + 1
        else:
            i += 1

    return True


def validate_glob_patterns(patterns: Iterable[str]) -> List[str]:
    """Return the patterns that are not valid globs."""
    return [pattern for pattern in patterns if not is_valid_glob_pattern(pattern)]

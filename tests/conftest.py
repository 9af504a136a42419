"""
Pytest configuration and fixtures for the bucket sync tests.
"""
import os
import shutil
import tempfile
from unittest.mock import Mock

import pytest

from bucket_sync.models.data_models import BucketListing
from bucket_sync.services.prefix_resolver import PrefixCache


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    test_env = {
        'SYNC_S3_ENDPOINT': 'http://localhost:9000',
        'SYNC_S3_ACCESS_KEY': 'minioadmin',
        'SYNC_S3_SECRET_KEY': 'minioadmin',
        'SYNC_S3_BUCKET': 'test-bucket',
        'SYNC_S3_REGION': 'us-east-1',
    }

    for key, value in test_env.items():
        os.environ[key] = value

    yield


@pytest.fixture
def temp_dir():
    """A scratch directory removed after the test."""
    path = tempfile.mkdtemp()
    yield path
    shutil.rmtree(path, ignore_errors=True)


def write_file(root: str, relative: str, size: int) -> str:
    """Create a file of the given size below root and return its path."""
    path = os.path.join(root, *relative.split('/'))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as f:
        f.write(b'x' * size)
    return path


@pytest.fixture
def site_tree(temp_dir):
    """A small web site: index.html plus a node_modules dependency."""
    site = os.path.join(temp_dir, 'site')
    write_file(site, 'index.html', 500)
    write_file(site, 'node_modules/x.js', 200)
    return site


@pytest.fixture
def bucket_client():
    """Bucket access handle with an empty bucket and successful uploads."""
    client = Mock()
    client.list_objects_shallow.return_value = BucketListing()
    client.put_object.return_value = {'ResponseMetadata': {'HTTPStatusCode': 200}}
    client.head_bucket.return_value = None
    return client


@pytest.fixture
def prefix_cache():
    """A private prefix cache so tests never share listings."""
    return PrefixCache(ttl=300)

"""
S3 client manager providing the bucket operations the sync engine needs.
"""
from typing import Any, BinaryIO, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..exceptions import UploadFailure
from ..models.config import S3Config
from ..models.data_models import BucketListing


class S3Manager:
    """
    Bucket access handle: HEAD, shallow LIST and PUT.

    The underlying boto3 client is created once and shared read-only by the
    upload workers.
    """

    def __init__(self, config: S3Config, client: Optional[Any] = None):
        """Initialize S3Manager with connection configuration."""
        self.config = config
        self.client = client if client is not None else self._create_s3_client(config)

        logger.info("S3Manager initialized")

    def _create_s3_client(self, config: S3Config):
        """Create an S3 client from configuration."""
        try:
            client = boto3.client(
                's3',
                endpoint_url=config.endpoint or None,
                aws_access_key_id=config.access_key or None,
                aws_secret_access_key=config.secret_key or None,
                aws_session_token=config.session_token,
                region_name=config.region or 'us-east-1'
            )
            logger.debug(f"Created S3 client for endpoint: {config.endpoint or 'default'}")
            return client
        except Exception as e:
            logger.error(f"Failed to create S3 client for {config.endpoint}: {e}")
            raise

    def head_bucket(self, bucket: str) -> None:
        """
        Check that the bucket exists and is reachable with these credentials.

        Raises:
            ClientError: If the bucket is missing or access is denied
        """
        self.client.head_bucket(Bucket=bucket)

    def list_objects_shallow(self, bucket: str, delimiter: str = '/',
                             max_keys: int = 1000) -> BucketListing:
        """
        List one level of a bucket using a delimiter.

        Args:
            bucket: Bucket name
            delimiter: Folder separator used to group keys into common prefixes
            max_keys: Upper bound on returned entries

        Returns:
            BucketListing with the common prefixes and object keys of the top level
        """
        response = self.client.list_objects_v2(
            Bucket=bucket,
            Delimiter=delimiter,
            MaxKeys=max_keys
        )

        listing = BucketListing(
            common_prefixes=[cp['Prefix'] for cp in response.get('CommonPrefixes', []) if cp.get('Prefix')],
            object_keys=[obj['Key'] for obj in response.get('Contents', []) if obj.get('Key')]
        )
        logger.debug(f"Listed {len(listing.common_prefixes)} prefixes and "
                     f"{len(listing.object_keys)} objects in bucket {bucket}")
        return listing

    def put_object(self, bucket: str, key: str, content_type: str, body: BinaryIO) -> Dict[str, Any]:
        """
        Store a stream under the given key.

        Raises:
            UploadFailure: If the transfer fails or the service answers with a non-success status
        """
        try:
            response = self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                CacheControl='no-cache'
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadFailure(key, f"Upload failed for {key}: {e}") from e

        status = response.get('ResponseMetadata', {}).get('HTTPStatusCode', 200)
        if not 200 <= status < 300:
            raise UploadFailure(key, f"Upload failed for {key}: HTTP status {status}")

        return response

    def test_connection(self, bucket: Optional[str] = None) -> bool:
        """
        Test connection to the configured bucket.

        Returns:
            bool: True if connection successful, False otherwise
        """
        bucket = bucket or self.config.bucket
        try:
            self.head_bucket(bucket)
            logger.info(f"S3 connection test successful for bucket {bucket}")
            return True
        except Exception as e:
            logger.error(f"S3 connection test failed for bucket {bucket}: {e}")
            return False

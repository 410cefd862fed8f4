"""Upload credentials for the images bucket."""

import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from udagram.exceptions import StorageError

logger = logging.getLogger(__name__)


class S3UploadCredentialIssuer:
    """Issue presigned PUT URLs scoped to a single object key.

    The URL carries the signature only, never the signing secret, and stops
    working ``ttl_seconds`` after issuance.
    """

    def __init__(self, bucket_name: str, s3_client, default_ttl: int = 300):
        self.bucket_name = bucket_name
        self.s3_client = s3_client
        self.default_ttl = default_ttl

    def issue(self, storage_key: str, ttl_seconds: Optional[int] = None) -> str:
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            raise ValueError(f"ttl_seconds must be a positive integer, got {ttl!r}")

        try:
            url = self.s3_client.generate_presigned_url(
                'put_object',
                Params={'Bucket': self.bucket_name, 'Key': storage_key},
                ExpiresIn=ttl
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign upload URL for {storage_key}: {e}") from e

        logger.debug("Issued upload URL for %s valid %ss", storage_key, ttl)
        return url

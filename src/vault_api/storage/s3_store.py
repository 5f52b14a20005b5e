"""S3-backed blob store."""

import logging
from typing import TYPE_CHECKING, List, Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from vault_api.errors import NotFoundError, StorageError
from vault_api.schemas import BlobInfo, StoredBlob
from vault_api.storage.base import BlobStore

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3BlobStore(BlobStore):
    """Blob store over one S3 bucket.

    :param bucket_name: The name of the S3 bucket.
    :param s3_client: A boto3 S3 client.
    :param region: Region used to derive virtual-hosted public URLs.
    :param endpoint_url: Custom endpoint (moto, MinIO); public URLs become path-style.
    :param public_url_base: Explicit public URL prefix, bucket included. Wins over the above.
    """

    def __init__(
        self,
        bucket_name: str,
        s3_client: "S3Client",
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        public_url_base: Optional[str] = None,
    ):
        self.bucket_name = bucket_name
        self.s3_client = s3_client
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_url_base = public_url_base

    def put(self, key: str, content: bytes, media_type: str) -> None:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=media_type or DEFAULT_CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading '{key}' to bucket '{self.bucket_name}': {str(e)}")
            raise StorageError(f"Failed to store file: {e}") from e
        logger.debug(f"Uploaded {len(content)} bytes to s3://{self.bucket_name}/{key}")

    def get(self, key: str) -> StoredBlob:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
            content = response["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                raise NotFoundError(f"Blob '{key}' not found") from e
            raise StorageError(f"Failed to read file: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read file: {e}") from e
        return StoredBlob(content=content, media_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE)

    def remove(self, key: str) -> None:
        # DeleteObject succeeds for keys that do not exist
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error deleting '{key}' from bucket '{self.bucket_name}': {str(e)}")
            raise StorageError(f"Failed to remove file: {e}") from e

    def public_url(self, key: str) -> str:
        quoted_key = quote(key, safe="/")
        if self.public_url_base:
            return f"{self.public_url_base.rstrip('/')}/{quoted_key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{quoted_key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{quoted_key}"

    def list_blobs(self, prefix: str = "") -> List[BlobInfo]:
        blobs = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                for item in page.get("Contents", []):
                    blobs.append(BlobInfo(key=item["Key"], size=item["Size"], last_modified=item["LastModified"]))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to list files: {e}") from e
        return blobs

    def ping(self) -> None:
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Bucket '{self.bucket_name}' is not reachable: {e}") from e

    def ensure_bucket(self) -> bool:
        """Create the bucket if it does not exist yet. Returns True when it was created."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return False
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") not in NOT_FOUND_CODES:
                raise StorageError(f"Failed to inspect bucket '{self.bucket_name}': {e}") from e

        create_kwargs = {"Bucket": self.bucket_name}
        if self.region != "us-east-1":
            create_kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.s3_client.create_bucket(**create_kwargs)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to create bucket '{self.bucket_name}': {e}") from e
        logger.info(f"Created bucket: {self.bucket_name}")
        return True

"""
Blob storage for the Vault API.

`build_blob_store` picks the implementation for the deployment mode:
the filesystem in local-dev, S3 (moto or AWS) otherwise.
"""

from vault_api.config.settings import Settings

from .base import BlobStore
from .clients import create_s3_client
from .keys import KeyGenerator, extract_extension
from .local_store import LocalBlobStore
from .s3_store import S3BlobStore


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.uses_s3:
        return S3BlobStore(
            bucket_name=settings.s3_bucket_name,
            s3_client=create_s3_client(settings),
            region=settings.aws_region,
            endpoint_url=settings.aws_endpoint_url,
            public_url_base=settings.public_url_base,
        )
    return LocalBlobStore(
        storage_dir=settings.storage_dir,
        bucket_name=settings.s3_bucket_name,
        public_url_base=settings.public_url_base,
    )


__all__ = [
    'BlobStore', 'S3BlobStore', 'LocalBlobStore',
    'KeyGenerator', 'extract_extension',
    'build_blob_store', 'create_s3_client',
]

"""AWS client construction from settings."""
import logging
from typing import TYPE_CHECKING

import boto3
from botocore.config import Config

from vault_api.config.settings import Settings

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


def create_s3_client(settings: Settings) -> "S3Client":
    """Create an S3 client whose calls time out per `storage_timeout_seconds`."""
    client_kwargs = {
        'region_name': settings.aws_region,
        'config': Config(
            connect_timeout=settings.storage_timeout_seconds,
            read_timeout=settings.storage_timeout_seconds,
            retries={'max_attempts': 3, 'mode': 'standard'},
        ),
    }

    if settings.aws_access_key_id:
        client_kwargs['aws_access_key_id'] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        client_kwargs['aws_secret_access_key'] = settings.aws_secret_access_key

    if settings.aws_endpoint_url:
        client_kwargs['endpoint_url'] = settings.aws_endpoint_url

    logger.debug(f"Creating S3 client (mode={settings.deployment_mode}, endpoint={settings.aws_endpoint_url})")
    return boto3.client('s3', **client_kwargs)

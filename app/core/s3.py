from functools import lru_cache

import boto3
import structlog
from botocore.config import Config

from app.core.config import settings

logger = structlog.get_logger(__name__)


def create_s3_client(
    region_name: str = None,
    endpoint_url: str = None,
    aws_access_key_id: str = None,
    aws_secret_access_key: str = None,
):
    """Create an S3 client signing with SigV4 so presigned URLs carry an expiry."""
    endpoint_url = endpoint_url or settings.S3_ENDPOINT_URL

    client = boto3.client(
        "s3",
        region_name=region_name or settings.AWS_REGION,
        endpoint_url=endpoint_url,
        aws_access_key_id=aws_access_key_id or settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=aws_secret_access_key
        or settings.AWS_SECRET_ACCESS_KEY,
        config=Config(
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "standard"},
            # Custom endpoints (MinIO, LocalStack) only route path-style URLs
            s3={"addressing_style": "path" if endpoint_url else "virtual"},
        ),
    )
    logger.info(
        "S3 client created",
        region=client.meta.region_name,
        endpoint=client.meta.endpoint_url,
    )
    return client


@lru_cache(maxsize=1)
def get_s3_client():
    """Process-wide S3 client; boto3 clients are thread-safe."""
    return create_s3_client()

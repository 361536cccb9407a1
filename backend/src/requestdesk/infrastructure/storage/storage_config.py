"""Storage configuration for S3-compatible attachment storage.

Built from application Settings. Supports both MinIO (development) and AWS S3
(production) with the same interface.
"""

from dataclasses import dataclass
from typing import Optional

from ...config import Settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL ('http://localhost:9000' for MinIO,
                      None for AWS S3 regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: Bucket holding attachments
        region: AWS region
        public_base_url: Base of the returned references; defaults to the
                         endpoint (or the AWS virtual-hosted URL)
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"
    public_base_url: Optional[str] = None


def storage_config_from_settings(settings: Settings) -> StorageConfig:
    config = StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET,
        region=settings.S3_REGION,
        public_base_url=settings.S3_PUBLIC_BASE_URL or None,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Raises ValueError if the configuration is unusable."""
    if not config.access_key or not config.secret_key:
        raise ValueError(
            "Missing storage credentials. Set S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY."
        )
    if not config.bucket_name:
        raise ValueError("Storage bucket name is required (S3_BUCKET)")
    if config.endpoint_url and not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid endpoint_url: {config.endpoint_url}. "
            "Must start with http:// or https://"
        )

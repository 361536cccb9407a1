"""S3 Blob Store - Implementation of BlobStorePort using boto3.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from io import BytesIO
from typing import Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from ...domain.ports.blob_store import BlobStoreError, BlobStorePort

logger = logging.getLogger(__name__)


class S3BlobStore(BlobStorePort):
    """S3-compatible attachment storage (AWS S3, MinIO).

    Example:
        config = storage_config_from_settings(get_settings())
        blobs = S3BlobStore(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )
        url = await blobs.put(data, "requests/A123_001_0307/scan.pdf", "application/pdf")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        public_base_url: Optional[str] = None,
    ):
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise BlobStoreError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise BlobStoreError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        if public_base_url:
            self.base_url = public_base_url.rstrip("/")
        elif endpoint_url:
            self.base_url = f"{endpoint_url.rstrip('/')}/{bucket_name}"
        else:
            self.base_url = f"https://{bucket_name}.s3.{region}.amazonaws.com"

        logger.info(
            f"Initialized S3 blob store: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    async def put(self, data: bytes, path: str, mime_type: str) -> str:
        if not data:
            raise ValueError("Cannot store empty file")

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=BytesIO(data),
                ContentType=mime_type,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 upload failed: path={path}, error={error_code}, message={e}")
            raise BlobStoreError(f"Failed to upload file: {error_code}")

        logger.info(f"Uploaded blob: path={path}, size={len(data)}, mime_type={mime_type}")
        return self.url_for(path)

    async def get(self, path: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=path)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("NoSuchKey", "404"):
                raise FileNotFoundError(f"File not found: {path}")
            logger.error(f"S3 retrieval failed: path={path}, error={error_code}")
            raise BlobStoreError(f"Failed to retrieve file: {error_code}")
        return response["Body"].read()

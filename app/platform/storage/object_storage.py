"""
Object storage for event images (MinIO or any S3-compatible service).
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from fastapi import Request
from starlette.concurrency import run_in_threadpool

from app.platform.config import Settings
from app.platform.logger import get_logger

logger = get_logger("object_storage")


class ObjectStorage(Protocol):
    """Defines the operations the upload feature needs from object storage."""

    async def upload_bytes(self, key: str, data: bytes, content_type: str) -> str:
        ...

    async def delete(self, key: str) -> None:
        ...


def object_key_from_url(url: str, bucket: str) -> str:
    """Return the object key for a URL produced by ``upload_bytes``."""
    path = urlparse(url).path.lstrip("/")
    prefix = f"{bucket}/"
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


@dataclass
class S3ObjectStorage:
    """
    S3-compatible storage client. The bucket is created on first use when missing.
    """

    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    region: str = "us-east-1"
    use_ssl: bool = False
    public_url: Optional[str] = None
    _bucket_ready: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        scheme = "https" if self.use_ssl else "http"
        self.endpoint_url = self.endpoint if "://" in self.endpoint else f"{scheme}://{self.endpoint}"
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            config=Config(s3={"addressing_style": "path"}, signature_version="s3v4"),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStorage":
        return cls(
            endpoint=settings.S3_ENDPOINT,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
            bucket=settings.S3_BUCKET,
            region=settings.S3_REGION,
            use_ssl=settings.S3_USE_SSL,
            public_url=settings.S3_PUBLIC_URL,
        )

    def url_for(self, key: str) -> str:
        base = (self.public_url or self.endpoint_url).rstrip("/")
        return f"{base}/{self.bucket}/{key}"

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except ClientError:
            logger.info(f"Creating bucket {self.bucket}")
            self._client.create_bucket(Bucket=self.bucket)
        self._bucket_ready = True

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        self._ensure_bucket()
        self._client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    async def upload_bytes(self, key: str, data: bytes, content_type: str) -> str:
        await run_in_threadpool(self._put, key, data, content_type)
        return self.url_for(key)

    async def delete(self, key: str) -> None:
        await run_in_threadpool(self._client.delete_object, Bucket=self.bucket, Key=key)


def get_object_storage(request: Request) -> ObjectStorage:
    """FastAPI dependency returning the application's object storage (created lazily)."""
    storage = getattr(request.app.state, "object_storage", None)
    if storage is None:
        storage = S3ObjectStorage.from_settings(request.app.state.settings)
        request.app.state.object_storage = storage
    return storage

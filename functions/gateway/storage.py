"""
Object storage abstraction for Firebase/GCS, S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from urllib.parse import urlsplit
from typing import Any, Dict, Optional, Protocol, Tuple

import boto3
from botocore.config import Config
from firebase_admin import storage

GCS_PUBLIC_BASE_URL = "https://storage.googleapis.com"


def generate_object_name(filename: Optional[str], prefix: str = "uploads") -> str:
    """Return a time-ordered unique object path that keeps the file extension."""
    extension = PurePosixPath(filename or "").suffix
    name = f"{uuid.uuid1()}{extension}"
    prefix = prefix.strip("/")
    return f"{prefix}/{name}" if prefix else name


class BlobStore(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Write the object, make it publicly readable and return its URL."""
        ...


@dataclass
class InMemoryBlobStore:
    """Test double for storage interactions."""

    bucket: str = "test-bucket"
    base_url: str = GCS_PUBLIC_BASE_URL
    stored_objects: Dict[str, Tuple[bytes, str]] = field(default_factory=dict)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.stored_objects[path] = (bytes(data), content_type)
        return f"{self.base_url}/{self.bucket}/{path}"


class FirebaseBlobStore:
    """Cloud Storage bucket reached through the Firebase app."""

    def __init__(self, bucket_name: Optional[str] = None, *, app: Any = None):
        self._bucket = storage.bucket(bucket_name, app=app)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        blob = self._bucket.blob(path)
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
        return f"{GCS_PUBLIC_BASE_URL}/{self._bucket.name}/{blob.name}"


@dataclass
class S3BlobStore:
    """
    S3-compatible storage client (AWS, Tencent COS, MinIO).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: Optional[str] = None

    def __post_init__(self):
        if not (self.public_base_url or self.endpoint or self.region):
            raise ValueError(
                "S3 region is required when neither an endpoint nor a public base URL is set"
            )
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        if self.endpoint:
            # Virtual-hosted style, matching the client addressing.
            endpoint = urlsplit(self.endpoint)
            return f"{endpoint.scheme or 'https'}://{self.bucket}.{endpoint.netloc}/{path}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{path}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self._client.put_object(
            Bucket=self.bucket,
            Key=path,
            Body=data,
            ContentType=content_type,
            ACL="public-read",
        )
        return self.public_url(path)

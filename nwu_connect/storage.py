"""
Storage abstraction for Cloudflare R2 (S3-compatible) and in-memory testing.

The API never handles file bytes: clients upload straight to the bucket with a
presigned PUT URL and then reference the public URL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import boto3
from botocore.config import Config


class StorageClient(Protocol):
    """Presigned uploads and public URLs for user media."""

    def presign_put(self, key: str, content_type: str, expires_in: int = 900) -> str:
        ...

    def public_url(self, key: str) -> str:
        ...


@dataclass
class InMemoryStorageClient:
    """Deterministic URLs for tests and local runs."""

    base_url: str = "https://example.test/storage"
    public_domain: str = "https://cdn.example.test"

    def presign_put(self, key: str, content_type: str, expires_in: int = 900) -> str:
        return f"{self.base_url}/{key}?op=put&type={content_type}&expires={expires_in}"

    def public_url(self, key: str) -> str:
        return f"{self.public_domain}/{key}"


@dataclass
class R2StorageClient:
    """
    S3-compatible storage client for Cloudflare R2.
    """

    account_id: str
    bucket: str
    access_key_id: str
    secret_access_key: str
    public_domain: str = ""

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=f"https://{self.account_id}.r2.cloudflarestorage.com",
            region_name="auto",
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def presign_put(self, key: str, content_type: str, expires_in: int = 900) -> str:
        # The client must send the same Content-Type header it was signed with.
        return self._client.generate_presigned_url(
            ClientMethod="put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in,
        )

    def public_url(self, key: str) -> str:
        return f"{self.public_domain.rstrip('/')}/{key}"

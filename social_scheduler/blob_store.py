"""Blob storage for post images.

:class:`BlobStore` is the interface the post registry depends on.
:class:`S3BlobStore` implements it on any S3-compatible service (AWS S3,
Cloudflare R2, or Google Cloud Storage through its XML interoperability
endpoint) with boto3.
"""

import asyncio
import logging
import os
from typing import Optional
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.config import Config as BotoConfig

logger = logging.getLogger(__name__)

# Longest lifetime SigV4 allows for a presigned URL
MAX_PRESIGNED_EXPIRY = 7 * 24 * 3600


class BlobStore:
    """Abstract blob store. Every method may raise; callers decide what is fatal."""

    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        raise NotImplementedError

    async def get_url(self, path: str) -> str:
        raise NotImplementedError

    async def delete(self, path: str) -> None:
        raise NotImplementedError

    def path_from_url(self, url: str) -> str:
        """Recover the object path from a URL returned by :meth:`get_url`."""
        raise NotImplementedError


class S3BlobStore(BlobStore):
    """S3-compatible blob store.

    When ``public_base_url`` is set, URLs are ``<public_base_url>/<path>``;
    otherwise presigned GET URLs valid for ``url_expires_in`` seconds.
    """

    def __init__(
        self,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region_name: Optional[str] = None,
        public_base_url: Optional[str] = None,
        url_expires_in: int = MAX_PRESIGNED_EXPIRY,
        client=None,
    ):
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.url_expires_in = min(url_expires_in, MAX_PRESIGNED_EXPIRY)
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._region_name = region_name
        self._client = client

    @classmethod
    def from_env(cls) -> "S3BlobStore":
        """
        Build from ``BLOB_BUCKET``, ``BLOB_ENDPOINT_URL``,
        ``BLOB_ACCESS_KEY_ID``, ``BLOB_SECRET_ACCESS_KEY``, ``BLOB_REGION`` and
        ``BLOB_PUBLIC_BASE_URL``.
        """
        bucket_name = os.environ.get("BLOB_BUCKET", "").strip()
        if not bucket_name:
            raise RuntimeError("BLOB_BUCKET must be set to store post images.")
        return cls(
            bucket_name=bucket_name,
            endpoint_url=os.environ.get("BLOB_ENDPOINT_URL") or None,
            access_key_id=os.environ.get("BLOB_ACCESS_KEY_ID") or None,
            secret_access_key=os.environ.get("BLOB_SECRET_ACCESS_KEY") or None,
            region_name=os.environ.get("BLOB_REGION") or None,
            public_base_url=os.environ.get("BLOB_PUBLIC_BASE_URL") or None,
        )

    @property
    def client(self):
        """boto3 S3 client, created on first use."""
        if self._client is None:
            boto_config = BotoConfig(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
                connect_timeout=10,
                read_timeout=30,
            )
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self._access_key_id,
                aws_secret_access_key=self._secret_access_key,
                region_name=self._region_name,
                config=boto_config,
            )
            logger.info("Blob store initialized: bucket=%s", self.bucket_name)
        return self._client

    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket_name,
            Key=path,
            Body=content,
            ContentType=content_type,
        )
        logger.info("Uploaded blob: key=%s, size=%d", path, len(content))

    async def get_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{quote(path)}"
        return await asyncio.to_thread(
            self.client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket_name, "Key": path},
            ExpiresIn=self.url_expires_in,
        )

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(
            self.client.delete_object,
            Bucket=self.bucket_name,
            Key=path,
        )
        logger.info("Deleted blob: key=%s", path)

    def path_from_url(self, url: str) -> str:
        if self.public_base_url and url.startswith(self.public_base_url + "/"):
            return unquote(urlparse(url[len(self.public_base_url) + 1:]).path)

        parsed = urlparse(url)
        path = unquote(parsed.path).lstrip("/")
        # path-style URLs carry the bucket as first segment
        bucket_prefix = f"{self.bucket_name}/"
        if path.startswith(bucket_prefix):
            path = path[len(bucket_prefix):]
        if not path:
            raise ValueError(f"URL does not reference an object: {url}")
        return path

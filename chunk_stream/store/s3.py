"""
S3 file store.
"""

import asyncio
import threading
from functools import partial
from typing import Any, Optional, Tuple
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from chunk_stream.exceptions import ConfigurationError
from chunk_stream.store.base import FileInfo, FileStore


class S3ClientFactory:
    """
    Factory to create S3 client instances.
    """

    def __init__(self, config: dict):
        credentials_config = config["credentials"]
        self._config = config
        self._s3_session = boto3.session.Session(
            aws_access_key_id=credentials_config["access_key_id"],
            aws_secret_access_key=credentials_config["secret_access_key"],
            region_name=self._config["boto_config"]["region_name"],
        )

    def create_s3_client(self) -> Any:
        """
        Creates S3 client.
        """
        credentials_config = self._config["credentials"]
        boto_config = self._config["boto_config"]

        return self._s3_session.client(
            service_name="s3",
            endpoint_url=credentials_config["endpoint_url"],
            config=Config(
                s3={
                    "addressing_style": boto_config["addressing_style"],
                },
                region_name=boto_config["region_name"],
                # A failed read terminates the stream, so botocore must not retry on its own.
                retries={"max_attempts": 0},
            ),
        )


class S3ClientCachedFactory:
    """
    Thread safe S3 client factory returning cached client or creating new.
    """

    def __init__(self, s3_client_factory: S3ClientFactory) -> None:
        self._s3_client_factory = s3_client_factory
        self._cached_s3_client: Optional[Any] = None
        self._lock = threading.Lock()

    def create_s3_client(self, cached: bool = True) -> Any:
        """
        Return cached S3 client. Or re-create it if needed.
        """
        with self._lock:
            if not cached or self._cached_s3_client is None:
                self._cached_s3_client = self._s3_client_factory.create_s3_client()

            return self._cached_s3_client


class S3FileStore(FileStore):
    """
    File store for S3-compatible storage services.

    URIs are either "s3://bucket/key" or keys within the configured bucket.
    """

    def __init__(self, config: dict, client_factory: Optional[Any] = None) -> None:
        self._s3_client_factory = client_factory or S3ClientCachedFactory(
            S3ClientFactory(config)
        )
        self._s3_bucket_name = config["credentials"].get("bucket")

    @property
    def _s3_client(self) -> Any:
        return self._s3_client_factory.create_s3_client()

    def _locate(self, uri: str) -> Tuple[str, str]:
        parsed = urlparse(uri)
        if parsed.scheme == "s3":
            return parsed.netloc, parsed.path.lstrip("/")

        if not self._s3_bucket_name:
            raise ConfigurationError(f"Bucket is not configured and not present in URI: {uri}")

        return self._s3_bucket_name, uri.lstrip("/")

    async def stat(self, uri: str) -> FileInfo:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self._stat, *self._locate(uri)))

    async def read_range(self, uri: str, offset: int, length: int) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(self._read_range, *self._locate(uri), offset, length)
        )

    def _stat(self, bucket: str, key: str) -> FileInfo:
        try:
            resp = self._s3_client.head_object(Bucket=bucket, Key=key)
        except ClientError as ce:
            code = ce.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if code == 404:
                return FileInfo(exists=False)
            raise

        return FileInfo(exists=True, size=resp["ContentLength"])

    def _read_range(self, bucket: str, key: str, offset: int, length: int) -> bytes:
        try:
            resp = self._s3_client.get_object(
                Bucket=bucket, Key=key, Range=f"bytes={offset}-{offset + length - 1}"
            )
        except ClientError as ce:
            # Range starting at or past the end of object.
            if ce.response.get("Error", {}).get("Code") == "InvalidRange":
                return b""
            raise

        return resp["Body"].read()

"""
Object storage client for Cloudflare R2.

R2 speaks the S3 API, so this wraps a boto3 S3 client pointed at the
account's R2 endpoint. boto3 is synchronous; calls run in a worker
thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from gencloud_mcp.shared.errors import StorageError
from gencloud_mcp.shared.observability import get_logger

logger = get_logger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


@dataclass(frozen=True)
class StorageObject:
    """One entry of a prefix listing."""

    key: str
    size: int
    last_modified: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "size": self.size,
            "lastModified": self.last_modified,
        }


@dataclass(frozen=True)
class StoredFile:
    """A fetched object with its full body."""

    key: str
    body: bytes

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def r2_endpoint_url(account_id: str) -> str:
    return f"https://{account_id}.r2.cloudflarestorage.com"


def _format_timestamp(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class R2StorageClient:
    """Async facade over a boto3 S3 client bound to one bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        max_keys: int = 1000,
        timeout: float = 30.0,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self._max_keys = max_keys
        if client is None:
            boto_config = BotoConfig(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 0},
            )
            client = boto3.client(
                service_name="s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name="auto",
                config=boto_config,
            )
        self._client = client

    async def list(self, prefix: str) -> List[StorageObject]:
        """List objects whose key starts with *prefix* (one page)."""
        try:
            response = await asyncio.to_thread(
                self._client.list_objects_v2,
                Bucket=self.bucket,
                Prefix=prefix,
                MaxKeys=self._max_keys,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("R2 list failed", bucket=self.bucket, prefix=prefix, error=str(e))
            raise StorageError(f"Failed to list objects under '{prefix}': {e}") from e

        if response.get("IsTruncated"):
            logger.warning(
                "R2 listing truncated",
                bucket=self.bucket,
                prefix=prefix,
                max_keys=self._max_keys,
            )

        return [
            StorageObject(
                key=item["Key"],
                size=item.get("Size", 0),
                last_modified=_format_timestamp(item.get("LastModified")),
            )
            for item in response.get("Contents", [])
        ]

    async def get(self, key: str) -> Optional[StoredFile]:
        """Fetch one object by exact key; None when it does not exist."""
        try:
            return await asyncio.to_thread(self._get_sync, key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                return None
            logger.error("R2 get failed", bucket=self.bucket, key=key, error=str(e))
            raise StorageError(f"Failed to read object '{key}': {e}") from e
        except BotoCoreError as e:
            logger.error("R2 get failed", bucket=self.bucket, key=key, error=str(e))
            raise StorageError(f"Failed to read object '{key}': {e}") from e

    def _get_sync(self, key: str) -> StoredFile:
        response = self._client.get_object(Bucket=self.bucket, Key=key)
        body = response["Body"]
        try:
            return StoredFile(key=key, body=body.read())
        finally:
            body.close()

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await asyncio.to_thread(close)


__all__ = ["R2StorageClient", "StorageObject", "StoredFile", "r2_endpoint_url"]

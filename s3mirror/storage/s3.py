# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
aiobotocore-backed storage for S3-compatible stores.

Translates the StorageBackend calls 1:1 onto the S3 API and converts
botocore failures into S3OperationError so callers never need to import
botocore themselves.
"""

from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator, Dict, List

import structlog
from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from s3mirror.config import MAX_LIST_PAGE_SIZE, MirrorConfig
from s3mirror.exceptions import BucketAlreadyExistsError, S3OperationError

logger = structlog.get_logger()

# Error codes S3 and MinIO return when the bucket to create is already there
BUCKET_EXISTS_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})


def _error_code(exc: Exception) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def _wrap_error(
    exc: Exception,
    operation: str,
    bucket: str | None = None,
    key: str | None = None,
) -> S3OperationError:
    code = _error_code(exc)
    details: Dict[str, Any] = {"operation": operation}
    if bucket is not None:
        details["bucket"] = bucket
    if key is not None:
        details["key"] = key
    if code:
        details["code"] = code

    error_cls = (
        BucketAlreadyExistsError
        if operation == "create_bucket" and code in BUCKET_EXISTS_CODES
        else S3OperationError
    )
    return error_cls(f"{operation} failed: {exc}", details=details)


class S3Storage:
    """
    StorageBackend over an open aiobotocore S3 client.

    The client is owned by whoever created it (usually open_storage());
    this class never closes it.
    """

    def __init__(self, client: Any, region: str = "us-east-1", page_size: int = MAX_LIST_PAGE_SIZE):
        self._client = client
        self._region = region
        self._page_size = page_size

    async def create_bucket(self, bucket: str) -> None:
        kwargs: Dict[str, Any] = {"Bucket": bucket}
        # us-east-1 is the implicit location and must not be sent explicitly
        if self._region and self._region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
        try:
            await self._client.create_bucket(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise _wrap_error(e, "create_bucket", bucket) from e
        logger.debug("bucket_created", bucket=bucket)

    async def delete_bucket(self, bucket: str) -> None:
        try:
            await self._client.delete_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            raise _wrap_error(e, "delete_bucket", bucket) from e
        logger.debug("bucket_deleted", bucket=bucket)

    async def list_buckets(self) -> List[str]:
        try:
            response = await self._client.list_buckets()
        except (ClientError, BotoCoreError) as e:
            raise _wrap_error(e, "list_buckets") from e
        return [b["Name"] for b in response.get("Buckets", [])]

    async def list_objects(self, bucket: str) -> List[str]:
        """List all keys in a bucket, following continuation tokens."""
        keys: List[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            async for page in paginator.paginate(
                Bucket=bucket,
                PaginationConfig={"PageSize": self._page_size},
            ):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            raise _wrap_error(e, "list_objects", bucket) from e
        return keys

    async def get_object(self, bucket: str, key: str) -> bytes:
        try:
            response = await self._client.get_object(Bucket=bucket, Key=key)
            async with response["Body"] as stream:
                return await stream.read()
        except (ClientError, BotoCoreError) as e:
            raise _wrap_error(e, "get_object", bucket, key) from e

    async def put_object(self, bucket: str, key: str, data: bytes) -> None:
        try:
            await self._client.put_object(Bucket=bucket, Key=key, Body=data)
        except (ClientError, BotoCoreError) as e:
            raise _wrap_error(e, "put_object", bucket, key) from e

    async def delete_object(self, bucket: str, key: str) -> None:
        try:
            await self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _wrap_error(e, "delete_object", bucket, key) from e


@asynccontextmanager
async def open_storage(config: MirrorConfig) -> AsyncIterator[S3Storage]:
    """
    Open an S3 client for the configured endpoint.

    The connection pool is sized to the transfer concurrency so that a full
    batch of parallel transfers never waits on a free connection.

    Usage:
        async with open_storage(config) as storage:
            await storage.list_buckets()
    """
    session = get_session()
    client_config = AioConfig(
        s3={"addressing_style": "path"},
        max_pool_connections=max(config.max_concurrent_transfers, 10),
    )

    logger.debug("storage_client_opening", endpoint=config.endpoint_url, region=config.region)

    # Client creation fails on a malformed endpoint (ValueError) or a
    # botocore setup problem before any request is made
    async with AsyncExitStack() as stack:
        try:
            client = await stack.enter_async_context(
                session.create_client(
                    "s3",
                    region_name=config.region,
                    endpoint_url=config.endpoint_url,
                    aws_access_key_id=config.access_key,
                    aws_secret_access_key=config.secret_key,
                    config=client_config,
                )
            )
        except (BotoCoreError, ValueError) as e:
            raise S3OperationError(
                f"Could not open S3 client for {config.endpoint_url}: {e}",
                details={"operation": "open_storage", "endpoint": config.endpoint_url},
            ) from e

        yield S3Storage(client, region=config.region, page_size=config.list_page_size)

# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Storage capability interface.

The sync pipelines and the HTTP surface only ever talk to this protocol.
Implementations must tolerate concurrent calls for distinct keys.
"""

from typing import List, Protocol, runtime_checkable


@runtime_checkable
class StorageBackend(Protocol):
    """Bucket and object operations of an S3-compatible store."""

    async def create_bucket(self, bucket: str) -> None:
        """Create a bucket; raises BucketAlreadyExistsError if it is there."""
        ...

    async def delete_bucket(self, bucket: str) -> None:
        ...

    async def list_buckets(self) -> List[str]:
        ...

    async def list_objects(self, bucket: str) -> List[str]:
        """Return every key in the bucket, across all listing pages."""
        ...

    async def get_object(self, bucket: str, key: str) -> bytes:
        ...

    async def put_object(self, bucket: str, key: str, data: bytes) -> None:
        ...

    async def delete_object(self, bucket: str, key: str) -> None:
        ...

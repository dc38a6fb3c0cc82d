# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for s3mirror tests.

Provides an in-memory object store with failure injection, a filesystem
wrapper that can fail on chosen paths, temporary directories, and a moto
S3 server for exercising the real aiobotocore client.
"""

import asyncio
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Generator, List, Set, Tuple

import httpx
import pytest
import structlog

from s3mirror.config import MirrorConfig
from s3mirror.exceptions import BucketAlreadyExistsError, S3OperationError
from s3mirror.localfs import LocalFilesystem


class InMemoryStorage:
    """
    StorageBackend kept in dictionaries.

    Failure injection:
        fail_get / fail_put: (bucket, key) pairs whose transfer raises
        fail_create: bucket names whose creation raises a non-"exists" error
        fail_list: bucket names whose listing raises
        fail_list_buckets: make list_buckets raise
    """

    def __init__(self, delay: float = 0.0):
        self.buckets: Dict[str, Dict[str, bytes]] = {}
        self.delay = delay
        self.fail_get: Set[tuple] = set()
        self.fail_put: Set[tuple] = set()
        self.fail_create: Set[str] = set()
        self.fail_list: Set[str] = set()
        self.fail_list_buckets = False
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add_object(self, bucket: str, key: str, data: bytes) -> None:
        self.buckets.setdefault(bucket, {})[key] = data

    async def _transfer(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

    async def create_bucket(self, bucket: str) -> None:
        self.calls.append(("create_bucket", bucket))
        if bucket in self.fail_create:
            raise S3OperationError("create_bucket failed: AccessDenied", details={"bucket": bucket})
        if bucket in self.buckets:
            raise BucketAlreadyExistsError(
                "create_bucket failed: BucketAlreadyOwnedByYou", details={"bucket": bucket}
            )
        self.buckets[bucket] = {}

    async def delete_bucket(self, bucket: str) -> None:
        self.calls.append(("delete_bucket", bucket))
        if bucket not in self.buckets:
            raise S3OperationError("delete_bucket failed: NoSuchBucket", details={"bucket": bucket})
        del self.buckets[bucket]

    async def list_buckets(self) -> List[str]:
        self.calls.append(("list_buckets",))
        if self.fail_list_buckets:
            raise S3OperationError("list_buckets failed: connection refused")
        return sorted(self.buckets)

    async def list_objects(self, bucket: str) -> List[str]:
        self.calls.append(("list_objects", bucket))
        if bucket in self.fail_list or bucket not in self.buckets:
            raise S3OperationError("list_objects failed: NoSuchBucket", details={"bucket": bucket})
        return sorted(self.buckets[bucket])

    async def get_object(self, bucket: str, key: str) -> bytes:
        self.calls.append(("get_object", bucket, key))
        await self._transfer()
        if (bucket, key) in self.fail_get:
            raise S3OperationError("get_object failed: SlowDown", details={"bucket": bucket, "key": key})
        try:
            return self.buckets[bucket][key]
        except KeyError:
            raise S3OperationError("get_object failed: NoSuchKey", details={"bucket": bucket, "key": key})

    async def put_object(self, bucket: str, key: str, data: bytes) -> None:
        self.calls.append(("put_object", bucket, key))
        await self._transfer()
        if (bucket, key) in self.fail_put:
            raise S3OperationError("put_object failed: InternalError", details={"bucket": bucket, "key": key})
        if bucket not in self.buckets:
            raise S3OperationError("put_object failed: NoSuchBucket", details={"bucket": bucket})
        self.buckets[bucket][key] = data

    async def delete_object(self, bucket: str, key: str) -> None:
        self.calls.append(("delete_object", bucket, key))
        self.buckets.get(bucket, {}).pop(key, None)


class FlakyFilesystem(LocalFilesystem):
    """LocalFilesystem that raises OSError for chosen paths."""

    def __init__(self, fail_read: Set[Path] | None = None, fail_list: Set[Path] | None = None):
        self.fail_read = {Path(p) for p in (fail_read or set())}
        self.fail_list = {Path(p) for p in (fail_list or set())}

    async def list_dir(self, path: Path):
        if Path(path) in self.fail_list:
            raise PermissionError(13, "Permission denied", str(path))
        return await super().list_dir(path)

    async def read_file(self, path: Path) -> bytes:
        if Path(path) in self.fail_read:
            raise PermissionError(13, "Permission denied", str(path))
        return await super().read_file(path)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any logging configuration a test (e.g. the CLI) applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage() -> InMemoryStorage:
    """Empty in-memory object store."""
    return InMemoryStorage()


@pytest.fixture
def populated_storage() -> InMemoryStorage:
    """Store with buckets x and y, x holding the keys a, b/c and b/d."""
    store = InMemoryStorage()
    store.add_object("x", "a", b"alpha")
    store.add_object("x", "b/c", b"charlie")
    store.add_object("x", "b/d", b"delta")
    store.add_object("y", "readme.txt", b"hello from y")
    return store


def write_tree(root: Path, files: Dict[str, bytes]) -> None:
    """Create files given as {"relative/path": content}."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


def read_tree(root: Path) -> Dict[str, bytes]:
    """Read every file below root as {"relative/path": content}."""
    return {
        "/".join(p.relative_to(root).parts): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture(scope="session")
def moto_endpoint() -> Generator[Tuple[str, int], None, None]:
    """
    Run moto's S3 server on a free local port for the whole session.

    The server speaks real HTTP, so the aiobotocore client goes through its
    normal request, pagination and error-parsing paths.
    """
    from moto.server import ThreadedMotoServer

    server = ThreadedMotoServer(ip_address="127.0.0.1", port=0, verbose=False)
    server.start()
    host, port = server.get_host_and_port()
    yield host, port
    server.stop()


@pytest.fixture
def open_moto_storage(moto_endpoint: Tuple[str, int]):
    """
    Factory opening S3Storage against a freshly reset moto server.

    Usage:
        async with open_moto_storage(list_page_size=2) as storage:
            ...
    """
    from s3mirror.storage import open_storage

    host, port = moto_endpoint
    httpx.post(f"http://{host}:{port}/moto-api/reset").raise_for_status()

    @asynccontextmanager
    async def _open(**overrides) -> AsyncIterator:
        config = MirrorConfig(
            host=host,
            port=port,
            access_key="testing",
            secret_key="testing",
            **overrides,
        )
        async with open_storage(config) as opened:
            yield opened

    return _open

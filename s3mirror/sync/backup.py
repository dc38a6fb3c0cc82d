# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3mirror Backup - Copy buckets from the object store into a local tree.

Every object ``<bucket>/<key>`` lands at ``<destination>/<bucket>/<key path>``.
Buckets are handled one after another; within a bucket all objects are
downloaded concurrently (bounded by a semaphore) and the whole batch is
awaited before the next bucket starts.

Failing to list buckets or objects aborts the run with BackupError. A
single object that cannot be fetched or written is logged, recorded in the
SyncResult and does not affect its siblings.
"""

import asyncio
from datetime import datetime, UTC
from pathlib import Path

import structlog
from ulid import ULID

from s3mirror.errors import explain_bucket_listing_failed
from s3mirror.exceptions import BackupError, UnsafeKeyError
from s3mirror.localfs import LocalFilesystem
from s3mirror.mapping import bucket_root, is_directory_marker, key_to_path
from s3mirror.storage.base import StorageBackend
from s3mirror.sync.results import SyncResult

logger = structlog.get_logger()

# Bucket filter values that mean "every bucket in the store"
ALL_BUCKETS = frozenset({"", "null"})


def wants_all_buckets(bucket_filter: str | None) -> bool:
    """True when the filter selects every bucket rather than one."""
    return bucket_filter is None or bucket_filter.strip() in ALL_BUCKETS


async def backup(
    storage: StorageBackend,
    destination_root: Path,
    bucket_filter: str | None = None,
    *,
    max_concurrency: int = 10,
    cancel_event: asyncio.Event | None = None,
    fs: LocalFilesystem | None = None,
) -> SyncResult:
    """
    Back up one bucket, or all of them, into a local directory.

    Args:
        storage: Object store to read from
        destination_root: Directory receiving one subdirectory per bucket
        bucket_filter: Bucket to back up; None, "" or "null" means all
        max_concurrency: Maximum simultaneous downloads within a bucket
        cancel_event: When set, transfers not yet started are abandoned
        fs: Filesystem capability (defaults to LocalFilesystem)

    Returns:
        SyncResult listing transferred keys and per-object failures

    Raises:
        BackupError: If the bucket list or a bucket's object list cannot be read
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    fs = fs or LocalFilesystem()
    destination_root = Path(destination_root)
    start_time = datetime.now(UTC)
    result = SyncResult(run_id=str(ULID()), action="backup")

    logger.info(
        "backup_started",
        run_id=result.run_id,
        destination=str(destination_root),
        bucket_filter=bucket_filter,
    )

    if wants_all_buckets(bucket_filter):
        try:
            buckets = await storage.list_buckets()
        except Exception as e:
            raise BackupError(
                explain_bucket_listing_failed(None),
                details={"error": str(e)},
            ) from e
    else:
        buckets = [bucket_filter.strip()]

    semaphore = asyncio.Semaphore(max_concurrency)

    for bucket in buckets:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning("backup_cancelled", run_id=result.run_id, next_bucket=bucket)
            break
        await _backup_bucket(
            storage, fs, destination_root, bucket, semaphore, cancel_event, result
        )

    result.duration_seconds = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "backup_completed",
        run_id=result.run_id,
        buckets=len(result.buckets),
        transferred=result.transferred_count,
        skipped=len(result.skipped),
        failed=result.failed_count,
        duration=result.duration_seconds,
    )

    return result


async def _backup_bucket(
    storage: StorageBackend,
    fs: LocalFilesystem,
    destination_root: Path,
    bucket: str,
    semaphore: asyncio.Semaphore,
    cancel_event: asyncio.Event | None,
    result: SyncResult,
) -> None:
    """Download every object of one bucket and wait for the whole batch."""
    root = bucket_root(destination_root, bucket)
    logger.info("bucket_backup_started", bucket=bucket, path=str(root))

    try:
        keys = await storage.list_objects(bucket)
    except Exception as e:
        raise BackupError(
            explain_bucket_listing_failed(bucket),
            details={"bucket": bucket, "error": str(e)},
        ) from e

    result.buckets.append(bucket)

    await asyncio.gather(
        *(
            _backup_object(storage, fs, root, bucket, key, semaphore, cancel_event, result)
            for key in keys
        )
    )

    logger.info("bucket_backup_completed", bucket=bucket, objects=len(keys))


async def _backup_object(
    storage: StorageBackend,
    fs: LocalFilesystem,
    root: Path,
    bucket: str,
    key: str,
    semaphore: asyncio.Semaphore,
    cancel_event: asyncio.Event | None,
    result: SyncResult,
) -> None:
    """Fetch one object and write it below the bucket directory."""
    if is_directory_marker(key):
        logger.debug("directory_marker_skipped", bucket=bucket, key=key)
        result.skipped.append(f"{bucket}/{key}")
        return

    try:
        path = key_to_path(root, key)
    except UnsafeKeyError as e:
        logger.error("object_backup_failed", bucket=bucket, key=key, stage="map_key", error=str(e))
        result.add_failure(bucket, key, None, "map_key", e)
        return

    async with semaphore:
        if cancel_event is not None and cancel_event.is_set():
            result.add_failure(bucket, key, path, "cancelled", "run cancelled before transfer started")
            return

        stage = "write_file"
        try:
            await fs.make_dirs(path.parent)
            logger.debug("object_backup_started", bucket=bucket, key=key, path=str(path))
            stage = "get_object"
            data = await storage.get_object(bucket, key)
            stage = "write_file"
            await fs.write_file(path, data)
        except Exception as e:
            logger.error(
                "object_backup_failed",
                bucket=bucket,
                key=key,
                path=str(path),
                stage=stage,
                error=str(e),
            )
            result.add_failure(bucket, key, path, stage, e)
            return

    result.transferred.append(f"{bucket}/{key}")
    logger.info("object_backed_up", bucket=bucket, key=key, path=str(path), size=len(data))

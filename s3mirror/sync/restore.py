# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3mirror Restore - Upload a local tree back into the object store.

Each immediate subdirectory of the source root is a bucket. The bucket is
created if needed (an existing bucket is fine) and every file below it is
uploaded under the key formed by its path relative to the bucket directory.

Only an unreadable source root aborts the run. A bucket that cannot be
created, a directory that cannot be listed or a file that cannot be read or
uploaded is logged, recorded in the SyncResult and skipped. Symlinks are
never followed.
"""

import asyncio
from datetime import datetime, UTC
from pathlib import Path

import structlog
from ulid import ULID

from s3mirror.errors import explain_missing_source_root
from s3mirror.exceptions import BucketAlreadyExistsError, RestoreError
from s3mirror.localfs import LocalFilesystem
from s3mirror.mapping import join_key, path_to_key
from s3mirror.storage.base import StorageBackend
from s3mirror.sync.results import SyncResult

logger = structlog.get_logger()


def _cancelled(cancel_event: asyncio.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


async def restore(
    storage: StorageBackend,
    source_root: Path,
    *,
    max_concurrency: int = 10,
    cancel_event: asyncio.Event | None = None,
    fs: LocalFilesystem | None = None,
) -> SyncResult:
    """
    Restore every bucket directory under source_root.

    Args:
        storage: Object store to write to
        source_root: Directory holding one subdirectory per bucket
        max_concurrency: Maximum simultaneous uploads
        cancel_event: When set, uploads not yet started are abandoned
        fs: Filesystem capability (defaults to LocalFilesystem)

    Returns:
        SyncResult listing uploaded keys and per-file failures

    Raises:
        RestoreError: If source_root cannot be listed
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    fs = fs or LocalFilesystem()
    source_root = Path(source_root)
    start_time = datetime.now(UTC)
    result = SyncResult(run_id=str(ULID()), action="restore")

    logger.info("restore_started", run_id=result.run_id, source=str(source_root))

    try:
        entries = await fs.list_dir(source_root)
    except Exception as e:
        raise RestoreError(
            explain_missing_source_root(str(source_root)),
            details={"error": str(e)},
        ) from e

    semaphore = asyncio.Semaphore(max_concurrency)

    for entry in entries:
        if _cancelled(cancel_event):
            logger.warning("restore_cancelled", run_id=result.run_id, next_bucket=entry.name)
            break

        if entry.is_symlink or not entry.is_dir:
            reason = "symlink" if entry.is_symlink else "not_a_directory"
            logger.warning("restore_entry_skipped", path=str(entry.path), reason=reason)
            result.skipped.append(str(entry.path))
            continue

        bucket = entry.name
        logger.info("bucket_restore_started", bucket=bucket, path=str(entry.path))

        if not await _ensure_bucket(storage, bucket, entry.path, result):
            continue

        result.buckets.append(bucket)
        await upload_dir(storage, fs, bucket, "", entry.path, semaphore, cancel_event, result)

        logger.info("bucket_restore_completed", bucket=bucket)

    result.duration_seconds = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "restore_completed",
        run_id=result.run_id,
        buckets=len(result.buckets),
        transferred=result.transferred_count,
        skipped=len(result.skipped),
        failed=result.failed_count,
        duration=result.duration_seconds,
    )

    return result


async def _ensure_bucket(
    storage: StorageBackend,
    bucket: str,
    path: Path,
    result: SyncResult,
) -> bool:
    """Create the bucket; False means it is unusable and should be skipped."""
    try:
        await storage.create_bucket(bucket)
        logger.info("bucket_created", bucket=bucket)
    except BucketAlreadyExistsError:
        logger.info("bucket_already_exists", bucket=bucket)
    except Exception as e:
        logger.error("bucket_create_failed", bucket=bucket, error=str(e))
        result.add_failure(bucket, None, path, "create_bucket", e)
        return False
    return True


async def upload_dir(
    storage: StorageBackend,
    fs: LocalFilesystem,
    bucket: str,
    prefix: str,
    directory: Path,
    semaphore: asyncio.Semaphore,
    cancel_event: asyncio.Event | None,
    result: SyncResult,
) -> None:
    """
    Upload one directory level, then descend into its subdirectories.

    Files at this level are uploaded concurrently. Subdirectories are
    handled one at a time, depth-first, so a directory is finished only
    when all of its descendants are.
    """
    logger.debug("directory_upload_started", bucket=bucket, prefix=prefix, path=str(directory))

    try:
        entries = await fs.list_dir(directory)
    except Exception as e:
        logger.error(
            "directory_upload_failed",
            bucket=bucket,
            prefix=prefix,
            path=str(directory),
            error=str(e),
        )
        result.add_failure(bucket, prefix or None, directory, "list_dir", e)
        return

    for entry in entries:
        if entry.is_symlink:
            logger.warning("restore_entry_skipped", path=str(entry.path), reason="symlink")
            result.skipped.append(str(entry.path))

    await asyncio.gather(
        *(
            _upload_file(
                storage, fs, bucket, path_to_key(directory, entry.path, prefix), entry.path,
                semaphore, cancel_event, result,
            )
            for entry in entries
            if not entry.is_dir and not entry.is_symlink
        )
    )

    for entry in entries:
        if not entry.is_dir:
            continue
        child_prefix = join_key(prefix, entry.name)
        if _cancelled(cancel_event):
            result.add_failure(bucket, child_prefix, entry.path, "cancelled", "run cancelled before directory started")
            continue
        await upload_dir(
            storage, fs, bucket, child_prefix, entry.path, semaphore, cancel_event, result
        )


async def _upload_file(
    storage: StorageBackend,
    fs: LocalFilesystem,
    bucket: str,
    key: str,
    path: Path,
    semaphore: asyncio.Semaphore,
    cancel_event: asyncio.Event | None,
    result: SyncResult,
) -> None:
    async with semaphore:
        if _cancelled(cancel_event):
            result.add_failure(bucket, key, path, "cancelled", "run cancelled before transfer started")
            return

        stage = "read_file"
        try:
            logger.debug("file_upload_started", bucket=bucket, key=key, path=str(path))
            data = await fs.read_file(path)
            stage = "put_object"
            await storage.put_object(bucket, key, data)
        except Exception as e:
            logger.error(
                "file_upload_failed",
                bucket=bucket,
                key=key,
                path=str(path),
                stage=stage,
                error=str(e),
            )
            result.add_failure(bucket, key, path, stage, e)
            return

    result.transferred.append(f"{bucket}/{key}")
    logger.info("file_uploaded", bucket=bucket, key=key, path=str(path), size=len(data))

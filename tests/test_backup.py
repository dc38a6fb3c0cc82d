# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup pipeline tests.

These tests verify:
1. Completeness - every object lands at its mapped path, byte-identical
2. Idempotence - a second run overwrites rather than duplicates
3. Fault isolation - one failing object never stops its siblings
4. Bucket selection - one named bucket, or all of them
5. Structural failures - listing errors abort the run
"""

import asyncio
from pathlib import Path

import pytest

from conftest import InMemoryStorage, read_tree
from s3mirror.exceptions import BackupError
from s3mirror.sync import backup, wants_all_buckets


# ============================================================================
# Completeness and idempotence
# ============================================================================

@pytest.mark.asyncio
async def test_backup_writes_every_object(temp_dir: Path, populated_storage: InMemoryStorage):
    result = await backup(populated_storage, temp_dir, "x")

    assert read_tree(temp_dir / "x") == {
        "a": b"alpha",
        "b/c": b"charlie",
        "b/d": b"delta",
    }
    assert sorted(result.transferred) == ["x/a", "x/b/c", "x/b/d"]
    assert result.buckets == ["x"]
    assert result.ok


@pytest.mark.asyncio
async def test_backup_twice_overwrites(temp_dir: Path, populated_storage: InMemoryStorage):
    await backup(populated_storage, temp_dir, "x")
    first = read_tree(temp_dir)

    await backup(populated_storage, temp_dir, "x")

    assert read_tree(temp_dir) == first
    # No temp files left behind
    assert not [p for p in temp_dir.rglob("*.tmp")]


@pytest.mark.asyncio
async def test_backup_replaces_stale_content(temp_dir: Path, populated_storage: InMemoryStorage):
    stale = temp_dir / "x" / "a"
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"a much longer stale payload than the new one")

    await backup(populated_storage, temp_dir, "x")

    assert stale.read_bytes() == b"alpha"


@pytest.mark.asyncio
async def test_backup_empty_bucket(temp_dir: Path, storage: InMemoryStorage):
    storage.buckets["empty"] = {}

    result = await backup(storage, temp_dir, "empty")

    assert result.buckets == ["empty"]
    assert result.transferred == []
    assert result.ok


# ============================================================================
# Bucket selection
# ============================================================================

@pytest.mark.asyncio
async def test_bucket_filter_touches_only_that_bucket(
    temp_dir: Path, populated_storage: InMemoryStorage
):
    await backup(populated_storage, temp_dir, "x")

    assert (temp_dir / "x").is_dir()
    assert not (temp_dir / "y").exists()
    assert ("list_objects", "y") not in populated_storage.calls
    assert ("list_buckets",) not in populated_storage.calls


@pytest.mark.asyncio
@pytest.mark.parametrize("bucket_filter", [None, "", "null"])
async def test_all_buckets(temp_dir: Path, populated_storage: InMemoryStorage, bucket_filter):
    result = await backup(populated_storage, temp_dir, bucket_filter)

    assert result.buckets == ["x", "y"]
    assert (temp_dir / "x" / "b" / "d").read_bytes() == b"delta"
    assert (temp_dir / "y" / "readme.txt").read_bytes() == b"hello from y"


def test_wants_all_buckets():
    assert wants_all_buckets(None)
    assert wants_all_buckets("")
    assert wants_all_buckets("null")
    assert not wants_all_buckets("photos")


@pytest.mark.asyncio
async def test_bucket_filter_ignores_surrounding_whitespace(
    temp_dir: Path, populated_storage: InMemoryStorage
):
    result = await backup(populated_storage, temp_dir, " x ")

    assert result.buckets == ["x"]
    assert read_tree(temp_dir) == {"x/a": b"alpha", "x/b/c": b"charlie", "x/b/d": b"delta"}


@pytest.mark.asyncio
async def test_buckets_are_processed_sequentially(temp_dir: Path):
    store = InMemoryStorage(delay=0.005)
    for i in range(5):
        store.add_object("x", f"k{i}", b"x")
        store.add_object("y", f"k{i}", b"y")

    await backup(store, temp_dir)

    fetched_buckets = [call[1] for call in store.calls if call[0] == "get_object"]
    assert fetched_buckets == ["x"] * 5 + ["y"] * 5


# ============================================================================
# Fault isolation
# ============================================================================

@pytest.mark.asyncio
async def test_failed_object_does_not_stop_siblings(
    temp_dir: Path, populated_storage: InMemoryStorage
):
    populated_storage.fail_get.add(("x", "b/c"))

    result = await backup(populated_storage, temp_dir, "x")

    assert (temp_dir / "x" / "a").read_bytes() == b"alpha"
    assert (temp_dir / "x" / "b" / "d").read_bytes() == b"delta"
    assert not (temp_dir / "x" / "b" / "c").exists()

    assert not result.ok
    assert result.failed_count == 1
    failure = result.failures[0]
    assert (failure.bucket, failure.key, failure.stage) == ("x", "b/c", "get_object")
    assert "SlowDown" in failure.error


@pytest.mark.asyncio
async def test_write_failure_is_recorded(temp_dir: Path, storage: InMemoryStorage):
    # "a" is a file, so "a/b" cannot be created below it
    storage.add_object("x", "a", b"file")
    storage.add_object("x", "a/b", b"child")

    result = await backup(storage, temp_dir, "x")

    assert result.transferred_count + result.failed_count == 2
    assert result.failed_count == 1
    assert result.failures[0].stage == "write_file"


@pytest.mark.asyncio
async def test_unsafe_key_is_refused(temp_dir: Path, storage: InMemoryStorage):
    storage.add_object("x", "../escape", b"evil")
    storage.add_object("x", "ok", b"fine")

    result = await backup(storage, temp_dir / "dump", "x")

    assert not (temp_dir / "escape").exists()
    assert (temp_dir / "dump" / "x" / "ok").read_bytes() == b"fine"
    assert [f.stage for f in result.failures] == ["map_key"]


@pytest.mark.asyncio
async def test_directory_markers_are_skipped(temp_dir: Path, storage: InMemoryStorage):
    storage.add_object("x", "photos/", b"")
    storage.add_object("x", "photos/cat.jpg", b"meow")

    result = await backup(storage, temp_dir, "x")

    assert (temp_dir / "x" / "photos" / "cat.jpg").read_bytes() == b"meow"
    assert result.skipped == ["x/photos/"]
    assert result.ok


@pytest.mark.asyncio
async def test_long_key_segment_is_written(temp_dir: Path, storage: InMemoryStorage):
    # Within the 255-char name limit, but not with a long temp suffix added
    name = "n" * 240
    storage.add_object("x", f"dir/{name}", b"long")

    result = await backup(storage, temp_dir, "x")

    assert result.ok, [str(f) for f in result.failures]
    assert (temp_dir / "x" / "dir" / name).read_bytes() == b"long"
    assert sorted(p.name for p in (temp_dir / "x" / "dir").iterdir()) == [name]


# ============================================================================
# Structural failures
# ============================================================================

@pytest.mark.asyncio
async def test_bucket_list_failure_raises(temp_dir: Path, populated_storage: InMemoryStorage):
    populated_storage.fail_list_buckets = True

    with pytest.raises(BackupError) as exc_info:
        await backup(populated_storage, temp_dir)

    assert "connection refused" in exc_info.value.details["error"]


@pytest.mark.asyncio
async def test_missing_bucket_raises(temp_dir: Path, populated_storage: InMemoryStorage):
    with pytest.raises(BackupError) as exc_info:
        await backup(populated_storage, temp_dir, "nope")

    assert exc_info.value.details["bucket"] == "nope"


# ============================================================================
# Concurrency
# ============================================================================

@pytest.mark.asyncio
async def test_transfers_are_bounded(temp_dir: Path):
    store = InMemoryStorage(delay=0.01)
    for i in range(20):
        store.add_object("x", f"obj-{i}", b"payload")

    result = await backup(store, temp_dir, "x", max_concurrency=3)

    assert result.transferred_count == 20
    assert 1 < store.max_in_flight <= 3


@pytest.mark.asyncio
async def test_cancel_before_start_transfers_nothing(
    temp_dir: Path, populated_storage: InMemoryStorage
):
    cancel = asyncio.Event()
    cancel.set()

    result = await backup(populated_storage, temp_dir, cancel_event=cancel)

    assert result.transferred == []
    assert result.buckets == []
    assert not any(call[0] == "get_object" for call in populated_storage.calls)


@pytest.mark.asyncio
async def test_cancel_mid_bucket_lets_in_flight_finish(temp_dir: Path):
    store = InMemoryStorage(delay=0.02)
    for i in range(6):
        store.add_object("x", f"obj-{i}", b"payload")

    cancel = asyncio.Event()
    task = asyncio.create_task(backup(store, temp_dir, "x", max_concurrency=2, cancel_event=cancel))
    await asyncio.sleep(0.01)
    cancel.set()
    result = await task

    assert result.transferred_count == 2
    assert {f.stage for f in result.failures} == {"cancelled"}
    assert result.transferred_count + result.failed_count == 6


def test_invalid_concurrency(temp_dir: Path, storage: InMemoryStorage):
    with pytest.raises(ValueError):
        asyncio.run(backup(storage, temp_dir, "x", max_concurrency=0))

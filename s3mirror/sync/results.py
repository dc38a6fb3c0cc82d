# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Outcome records shared by the backup and restore pipelines.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class TransferFailure:
    """A single object, file, directory or bucket that could not be moved."""

    bucket: str
    key: str | None
    path: str | None
    stage: str  # create_bucket, list_dir, map_key, get_object, read_file, put_object, write_file, cancelled
    error: str

    def __str__(self) -> str:
        target = f"{self.bucket}/{self.key}" if self.key else self.bucket
        return f"{target} [{self.stage}]: {self.error}"


@dataclass
class SyncResult:
    """Result of one backup or restore run."""

    run_id: str  # ULID
    action: str
    buckets: List[str] = field(default_factory=list)
    transferred: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: List[TransferFailure] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def transferred_count(self) -> int:
        return len(self.transferred)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    def add_failure(
        self,
        bucket: str,
        key: str | None,
        path: Path | str | None,
        stage: str,
        error: BaseException | str,
    ) -> TransferFailure:
        failure = TransferFailure(
            bucket=bucket,
            key=key,
            path=str(path) if path is not None else None,
            stage=stage,
            error=str(error),
        )
        self.failures.append(failure)
        return failure

# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Sync Engine - Backup to and restore from a local directory tree.
"""

from s3mirror.sync.backup import backup, wants_all_buckets
from s3mirror.sync.restore import restore, upload_dir
from s3mirror.sync.results import SyncResult, TransferFailure

__all__ = [
    # Backup
    "backup",
    "wants_all_buckets",
    # Restore
    "restore",
    "upload_dir",
    # Results
    "SyncResult",
    "TransferFailure",
]

# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3mirror - Mirror an S3-compatible object store to and from a local tree.

Backs buckets up as ``<root>/<bucket>/<key path>`` and restores them from the
same layout, with bounded concurrent transfers and per-object fault
isolation. Also ships a small HTTP API for bucket/object browsing.
"""

__version__ = "0.1.0"

# Configuration
from s3mirror.config import MirrorConfig
from s3mirror.env import create_config_from_env

# Storage
from s3mirror.storage import S3Storage, StorageBackend, open_storage

# Sync engine
from s3mirror.sync import SyncResult, TransferFailure, backup, restore

__all__ = [
    # Version
    "__version__",
    # Configuration
    "MirrorConfig",
    "create_config_from_env",
    # Storage
    "StorageBackend",
    "S3Storage",
    "open_storage",
    # Sync engine
    "backup",
    "restore",
    "SyncResult",
    "TransferFailure",
]

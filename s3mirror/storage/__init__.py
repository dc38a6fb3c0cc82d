# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Storage - Object store capability interface and its S3 implementation.
"""

from s3mirror.storage.base import StorageBackend
from s3mirror.storage.s3 import S3Storage, open_storage

__all__ = [
    "StorageBackend",
    "S3Storage",
    "open_storage",
]

# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3 Mirror Exceptions - Custom exceptions for the s3mirror package.
"""


class S3MirrorError(Exception):
    """Base exception for all s3mirror errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(S3MirrorError):
    """Raised when configuration is invalid."""

    pass


class S3OperationError(S3MirrorError):
    """Raised when a call against the object store fails."""

    pass


class BucketAlreadyExistsError(S3OperationError):
    """Raised by create_bucket when the bucket is already there."""

    pass


class UnsafeKeyError(S3MirrorError):
    """Raised when an object key would resolve outside its bucket directory."""

    pass


class BackupError(S3MirrorError):
    """Raised when a backup run cannot enumerate buckets or objects."""

    pass


class RestoreError(S3MirrorError):
    """Raised when a restore run cannot enumerate its source directory."""

    pass

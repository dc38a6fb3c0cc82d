# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for s3mirror.

These helpers centralize wording for common configuration errors so that
the CLI, the HTTP surface and the environment loader all read the same.
"""


def explain_invalid_port_env(value: str | None) -> str:
    """
    Explain that MINIO_PORT is invalid.
    """

    return (
        f"Invalid MINIO_PORT value: {value!r}. "
        "It must be an integer between 1 and 65535."
    )


def explain_invalid_concurrency_env(value: str | None) -> str:
    """
    Explain that S3MIRROR_MAX_CONCURRENCY is invalid.
    """

    return (
        f"Invalid S3MIRROR_MAX_CONCURRENCY value: {value!r}. "
        "It must be a positive integer number of parallel transfers."
    )


def explain_invalid_bool_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment variable could not be parsed.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 'true', 'false', '1', '0', 'yes', 'no'."
    )


def explain_missing_source_root(path: str) -> str:
    """
    Explain that the restore source directory cannot be read.
    """

    return (
        f"Cannot read restore source directory {path!r}. "
        "Pass --path pointing at a directory whose subdirectories are bucket names."
    )


def explain_bucket_listing_failed(bucket: str | None) -> str:
    """
    Explain that a bucket (or the bucket list) could not be enumerated.
    """

    if bucket is None:
        return "Failed to list buckets. Check MINIO_HOST, MINIO_PORT and the credentials."
    return (
        f"Failed to list objects in bucket {bucket!r}. "
        "Check that the bucket exists and the credentials can read it."
    )

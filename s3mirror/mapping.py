# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Object key <-> local path mapping.

An object key is a ``/``-delimited virtual path. On disk each segment becomes
one directory level under ``<root>/<bucket>``; the file's path relative to
the bucket directory, joined with ``/``, is the key again. The two functions
below are exact inverses for keys without empty or ``..`` segments.
"""

from pathlib import Path

from s3mirror.exceptions import UnsafeKeyError

KEY_SEPARATOR = "/"


def bucket_root(root: Path, bucket: str) -> Path:
    """Directory holding a bucket's objects under a backup root."""
    return Path(root) / bucket


def join_key(prefix: str, name: str) -> str:
    """
    Append one path segment to a key prefix.

    A top-level entry has an empty prefix and maps to ``name`` itself, never
    to ``/name``.
    """
    if not prefix:
        return name
    return f"{prefix}{KEY_SEPARATOR}{name}"


def is_directory_marker(key: str) -> bool:
    """True for zero-length "folder" keys such as ``photos/``."""
    return key.endswith(KEY_SEPARATOR)


def key_to_path(root: Path, key: str) -> Path:
    """
    Map an object key to a file path under a bucket directory.

    Empty segments (``a//b``) are passed through as-is and collapse on the
    filesystem. A ``..`` segment would escape ``root`` and is refused.

    Args:
        root: The bucket's local directory
        key: Object key

    Returns:
        Path of the file holding the object's bytes

    Raises:
        UnsafeKeyError: If the key contains a ``..`` segment
    """
    segments = key.split(KEY_SEPARATOR)
    if ".." in segments:
        raise UnsafeKeyError(
            f"Object key escapes the bucket directory: {key!r}",
            details={"key": key},
        )
    return Path(root, *segments)


def path_to_key(root: Path, path: Path, prefix: str = "") -> str:
    """
    Map a file path back to its object key.

    Args:
        root: The bucket's local directory (or the directory ``prefix`` names)
        path: File somewhere below ``root``
        prefix: Key prefix already accumulated for ``root``

    Returns:
        The object key
    """
    relative = Path(path).relative_to(root)
    key = KEY_SEPARATOR.join(relative.parts)
    return join_key(prefix, key)

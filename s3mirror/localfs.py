# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Local filesystem access for the sync pipelines.

All calls go through aiofiles so that disk I/O does not block the event
loop while many transfers are in flight. Errors are left as OSError; the
pipelines decide whether a failure is structural or per-transfer.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

import aiofiles
import aiofiles.os
import structlog
from ulid import ULID

logger = structlog.get_logger()


@dataclass(frozen=True)
class DirEntry:
    """One entry of a directory listing."""

    name: str
    path: Path
    is_dir: bool
    is_symlink: bool = False


class LocalFilesystem:
    """Async filesystem capability used by backup and restore."""

    async def list_dir(self, path: Path) -> List[DirEntry]:
        """
        List the immediate entries of a directory, sorted by name.

        Symlinks are reported with is_symlink set and is_dir False; they are
        never followed.

        Raises:
            OSError: If the directory cannot be read
        """
        names = await aiofiles.os.listdir(path)
        entries: List[DirEntry] = []
        for name in sorted(names):
            child = Path(path) / name
            if await aiofiles.os.path.islink(child):
                entries.append(DirEntry(name=name, path=child, is_dir=False, is_symlink=True))
                continue
            entries.append(
                DirEntry(name=name, path=child, is_dir=await aiofiles.os.path.isdir(child))
            )
        return entries

    async def make_dirs(self, path: Path) -> None:
        """Create a directory and any missing parents."""
        await aiofiles.os.makedirs(path, exist_ok=True)

    async def read_file(self, path: Path) -> bytes:
        """Read a whole file."""
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def write_file(self, path: Path, data: bytes) -> None:
        """
        Write a whole file, replacing any previous content.

        The data goes to a temporary sibling first and is renamed into place,
        so a failed transfer never leaves a truncated file behind.
        """
        path = Path(path)
        # Fixed-length name so long final names still fit the filesystem limit
        temp_path = path.with_name(f".{ULID()}.tmp")
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(temp_path, path)
        except Exception:
            if await aiofiles.os.path.exists(temp_path):
                await aiofiles.os.remove(temp_path)
            raise

        logger.debug("file_written", path=str(path), size=len(data))

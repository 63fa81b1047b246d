"""Blob storage on the local filesystem.

Uploaded files are written under a single root directory with a generated
name; the original file name is kept only in the catalog record.
"""
import logging
import os
import random
import time
from pathlib import Path

import aiofiles
import aiofiles.os

from game_catalog.errors import PayloadTooLargeError, StorageWriteError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class BlobStore:
    """Writes, checks and removes blobs under ``root``.

    In-progress writes go to a sibling ``<root>.incoming`` directory so the
    root only ever holds complete blobs.
    """

    def __init__(self, root: str | Path, max_bytes: int):
        self.root = Path(root)
        self.max_bytes = max_bytes
        self.root.mkdir(parents=True, exist_ok=True)
        self.incoming = self.root.resolve().with_name(self.root.resolve().name + ".incoming")
        self.incoming.mkdir(parents=True, exist_ok=True)

    def _generate_name(self, name_hint: str) -> str:
        ext = Path(name_hint).suffix
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"

    async def store(self, name_hint: str, stream, declared_size: int | None = None) -> tuple[str, int]:
        """Copy ``stream`` (anything with ``async read(size)``) into a new blob.

        Returns ``(storage_path, byte_size)``. The data is written to a
        ``.part`` file in ``incoming`` and renamed into the root only once
        complete.
        """
        if declared_size is not None and declared_size > self.max_bytes:
            raise PayloadTooLargeError(self._too_large_message())

        file_path = self.root / self._generate_name(name_hint)
        part_path = self.incoming / (file_path.name + ".part")

        try:
            size = await self._copy(stream, part_path)
            await aiofiles.os.replace(part_path, file_path)
        except OSError as e:
            self._discard(part_path)
            logger.error("Failed to write blob %s: %s", file_path, e)
            raise StorageWriteError(f"Could not store file: {e}") from e
        except BaseException:
            # Size limit, cancellation on client disconnect, anything else
            self._discard(part_path)
            raise

        return str(file_path), size

    async def _copy(self, stream, part_path: Path) -> int:
        size = 0
        async with aiofiles.open(part_path, "wb") as f:
            while True:
                chunk = await stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_bytes:
                    raise PayloadTooLargeError(self._too_large_message())
                await f.write(chunk)
        return size

    def _too_large_message(self) -> str:
        return f"File exceeds the maximum upload size of {self.max_bytes} bytes"

    def _discard(self, path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    async def exists(self, storage_path: str) -> bool:
        return await aiofiles.os.path.isfile(storage_path)

    async def delete(self, storage_path: str) -> None:
        """Delete a blob. Deleting a path that is already gone is not an error."""
        try:
            await aiofiles.os.remove(storage_path)
        except FileNotFoundError:
            logger.info("Blob %s already absent, nothing to delete", storage_path)

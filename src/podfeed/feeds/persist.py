"""Atomic feed file writes."""

import asyncio
import logging
import os
from pathlib import Path

import aiofiles
import aiofiles.os

from podfeed.utils.errors import PersistError

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


def temp_path_for(path: Path) -> Path:
    return path.with_name(path.name + TEMP_SUFFIX)


class AtomicPersister:
    """Writes feed files so readers never see a partial document.

    Content goes to ``<path>.tmp`` first and is then renamed over ``path``
    in one step. Each slug owns its own temp file, so concurrent writes for
    different podcasts never collide.

    Example:
        >>> persister = AtomicPersister()
        >>> await persister.write(Path("feeds/p1.xml"), xml_bytes)
    """

    async def write(self, path: Path, document: bytes | str) -> None:
        """Atomically replace ``path`` with ``document``.

        The temp file is flushed and fsynced before the rename, so a crash
        at any point leaves either the old or the new feed at ``path``.

        Args:
            path: Final feed location
            document: Feed content; text is encoded as UTF-8

        Raises:
            PersistError: If the directory, temp file or rename fails. The
                previous file at ``path`` is left untouched.
        """
        data = document.encode("utf-8") if isinstance(document, str) else document
        temp_path = temp_path_for(path)

        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
        except OSError as e:
            raise PersistError(f"Failed to create {path.parent}: {e}", path=str(path)) from e

        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(temp_path, path)
        except BaseException as e:
            temp_path.unlink(missing_ok=True)
            if isinstance(e, OSError):
                raise PersistError(f"Failed to write {path}: {e}", path=str(path)) from e
            raise

        logger.debug(f"Wrote {len(data)} bytes to {path}")

"""
Local filesystem file store.
"""

import asyncio
import os
from typing import Optional
from urllib.parse import unquote, urlparse

from chunk_stream.store.base import FileInfo, FileStore


def uri_to_path(uri: str) -> str:
    """
    Convert file:// URI or plain path to filesystem path.
    """
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    return uri


class LocalFileStore(FileStore):
    """
    File store for local filesystem.

    Blocking file operations are executed in the default executor of the running loop.
    """

    def __init__(self, config: Optional[dict] = None) -> None:
        self._config = config or {}

    async def stat(self, uri: str) -> FileInfo:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._stat, uri_to_path(uri))

    async def read_range(self, uri: str, offset: int, length: int) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self._read_range, uri_to_path(uri), offset, length
        )

    @staticmethod
    def _stat(path: str) -> FileInfo:
        try:
            stat_result = os.stat(path)
        except FileNotFoundError:
            return FileInfo(exists=False)

        if not os.path.isfile(path):
            raise IsADirectoryError(f"Not a regular file: {path}")

        return FileInfo(exists=True, size=stat_result.st_size)

    @staticmethod
    def _read_range(path: str, offset: int, length: int) -> bytes:
        with open(path, "rb") as fobj:
            fobj.seek(offset)
            return fobj.read(length)

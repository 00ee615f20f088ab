"""
Interfaces for file stores.
"""

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Union

RawChunk = Union[bytes, bytearray, memoryview, str]


@dataclass(frozen=True)
class FileInfo:
    """
    File metadata reported by a file store.
    """

    exists: bool
    size: int = 0


class FileStore(metaclass=ABCMeta):
    """
    Base class for file stores.

    A file store only exposes whole-range reads. Streaming on top of it is done by
    ChunkedFileReader.
    """

    @abstractmethod
    async def stat(self, uri: str) -> FileInfo:
        """
        Return existence and size of the file.
        """
        pass

    @abstractmethod
    async def read_range(self, uri: str, offset: int, length: int) -> RawChunk:
        """
        Read at most ``length`` bytes starting at ``offset``.

        The result may be shorter than requested at the end of file, and empty
        if ``offset`` is at or past the end. Text results are base64-encoded data.
        """
        pass

"""
Testing utilities.
"""
import asyncio
import base64
import random
from typing import Any, Coroutine, Dict, List, Optional, Tuple

import pytest

from chunk_stream.store.base import FileInfo, FileStore, RawChunk
from chunk_stream.stream.events import EndEvent, ErrorEvent, ProgressEvent, StreamEvent


def parametrize(*tests):
    """
    A wrapper for `pytest.mark.parametrize` that eliminates parallel lists in the interface.

    Example:
    ```
    @parametrize(
        {
            'id': 'test1',
            'args': {
                'arg1': 'value1-1',
                'arg2': 'value1-2',
            }
        },
        {
            'id': 'test2',
            'args': {
                'arg1': 'value2-1',
                'arg2': 'value2-2',
            }
        }
    )
    ```
    """
    ids: List[str] = []
    argnames: List[str] = []
    argvalues: list = []
    for test in tests:
        ids.append(test["id"])

        test_args = sorted(test["args"].items())
        test_argnames = [arg[0] for arg in test_args]
        test_argvalues = [arg[1] for arg in test_args]

        if not argnames:
            argnames = test_argnames
        else:
            assert argnames == test_argnames

        argvalues.append(test_argvalues)

    return pytest.mark.parametrize(ids=ids, argnames=argnames, argvalues=argvalues)


def run(coro: Coroutine) -> Any:
    """
    Run coroutine in a new event loop.
    """
    return asyncio.run(coro)


def generate_bytes(size: int) -> bytes:
    """
    Generate cyclically increasing bytes sample.
    """
    return bytes(i % 256 for i in range(size))


class FakeFileStore(FileStore):
    """
    In-memory file store recording calls.

    Supports variable latency, failure injection, short reads, base64 transport and
    files whose reported size differs from their contents.
    """

    # pylint: disable=too-many-instance-attributes
    def __init__(
        self,
        files: Optional[Dict[str, bytes]] = None,
        *,
        sizes: Optional[Dict[str, int]] = None,
        max_latency: float = 0.0,
        seed: int = 0,
        stat_error: Optional[Exception] = None,
        read_errors: Optional[Dict[int, Exception]] = None,
        max_read_length: Optional[int] = None,
        base64_transport: bool = False,
        raw_chunks: Optional[Dict[int, RawChunk]] = None,
    ) -> None:
        self.files = dict(files or {})
        self.sizes = dict(sizes or {})
        self.max_latency = max_latency
        self.stat_error = stat_error
        self.read_errors = dict(read_errors or {})
        self.max_read_length = max_read_length
        self.base64_transport = base64_transport
        self.raw_chunks = dict(raw_chunks or {})

        self.stat_calls: List[str] = []
        self.read_calls: List[Tuple[str, int, int]] = []
        self.outstanding = 0
        self.max_outstanding = 0
        self._random = random.Random(seed)

    async def stat(self, uri: str) -> FileInfo:
        self.stat_calls.append(uri)
        async with self._call():
            if self.stat_error is not None:
                raise self.stat_error
            if uri not in self.files:
                return FileInfo(exists=False)
            return FileInfo(exists=True, size=self.sizes.get(uri, len(self.files[uri])))

    async def read_range(self, uri: str, offset: int, length: int) -> RawChunk:
        self.read_calls.append((uri, offset, length))
        async with self._call():
            if offset in self.read_errors:
                raise self.read_errors[offset]
            if offset in self.raw_chunks:
                return self.raw_chunks[offset]

            if self.max_read_length is not None:
                length = min(length, self.max_read_length)
            data = self.files[uri][offset:offset + length]

            if self.base64_transport:
                return base64.b64encode(data).decode("ascii")
            return data

    def _call(self) -> "_OutstandingCall":
        return _OutstandingCall(self)

    async def delay(self) -> None:
        """
        Sleep for random time up to max_latency, always yielding to the event loop.
        """
        await asyncio.sleep(self._random.uniform(0, self.max_latency))


class _OutstandingCall:
    def __init__(self, store: FakeFileStore) -> None:
        self._store = store

    async def __aenter__(self) -> None:
        self._store.outstanding += 1
        self._store.max_outstanding = max(self._store.max_outstanding, self._store.outstanding)
        await self._store.delay()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self._store.outstanding -= 1
        return False


class EventRecorder:
    """
    Stream subscriber collecting all events.
    """

    def __init__(self) -> None:
        self.events: List[StreamEvent] = []

    def __call__(self, event: StreamEvent) -> None:
        self.events.append(event)

    @property
    def progress(self) -> List[ProgressEvent]:
        return [e for e in self.events if isinstance(e, ProgressEvent)]

    @property
    def errors(self) -> List[BaseException]:
        return [e.error for e in self.events if isinstance(e, ErrorEvent)]

    @property
    def ends(self) -> int:
        return sum(1 for e in self.events if isinstance(e, EndEvent))

"""
Pull-based readable stream with backpressure.

The stream doesn't know where the data comes from. A producer is attached to it and
receives a pull signal whenever the stream wants more data; the producer answers
asynchronously by pushing data, signaling the end or an error.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, List, Optional

from chunk_stream.stream.events import EndEvent, ErrorEvent, EventListener, StreamEvent

DEFAULT_HIGH_WATER_MARK = 16 * 1024


class PullProducer(ABC):
    """
    Source of data for ReadableStream.
    """

    @abstractmethod
    def on_pull(self) -> None:
        """
        Stream wants more data. Must not block; repeated signals may arrive before
        the previous one was answered.
        """
        pass

    @abstractmethod
    def terminate(self, error: Optional[BaseException] = None) -> None:
        """
        Stop producing. Called when the consumer closes the stream.
        """
        pass


class ReadableStream:
    """
    Buffers pushed chunks until the consumer reads them.

    Pull signals are issued while less than ``high_water_mark`` bytes are buffered and
    whenever the consumer waits on an empty buffer. They are delivered on the next
    event loop iteration, never from inside push_data().
    """

    def __init__(self, high_water_mark: int = DEFAULT_HIGH_WATER_MARK) -> None:
        if high_water_mark < 0:
            raise ValueError(f"High water mark can't be negative: {high_water_mark}")

        self._high_water_mark = high_water_mark
        self._producer: Optional[PullProducer] = None
        self._listener: Optional[EventListener] = None
        self._buffer: Deque[bytes] = deque()
        self._buffered_bytes = 0
        self._ended = False
        self._closed = False
        self._error: Optional[BaseException] = None
        self._waiter: Optional[asyncio.Future] = None
        self._pull_scheduled = False

    def attach(self, producer: PullProducer) -> None:
        """
        Set producer of the stream.
        """
        if self._producer is not None:
            raise RuntimeError("Stream already has a producer")
        self._producer = producer

    def subscribe(self, listener: EventListener) -> None:
        """
        Register the listener for stream events.

        Events emitted before subscription are not replayed.
        """
        if self._listener is not None:
            raise RuntimeError("Stream already has a subscriber")
        self._listener = listener

    @property
    def finished(self) -> bool:
        """
        True if no more data will be pushed to the stream.
        """
        return self._ended or self._closed or self._error is not None

    @property
    def buffered_bytes(self) -> int:
        return self._buffered_bytes

    def push_data(self, data: bytes) -> None:
        """
        Append a chunk to the stream buffer.
        """
        if self.finished:
            raise RuntimeError("Push to finished stream")
        if not data:
            return

        self._buffer.append(data)
        self._buffered_bytes += len(data)
        self._wakeup()
        self._maybe_pull()

    def signal_end(self) -> None:
        """
        No more data will be pushed.
        """
        if self.finished:
            return

        self._ended = True
        self.emit(EndEvent())
        self._wakeup()

    def signal_error(self, error: BaseException) -> None:
        """
        Terminate the stream with the error.
        """
        if self.finished:
            return

        self._error = error
        self.emit(ErrorEvent(error))
        self._wakeup()

    def emit(self, event: StreamEvent) -> None:
        """
        Deliver the event to the subscriber.
        """
        if self._listener is not None:
            self._listener(event)

    async def read(self) -> Optional[bytes]:
        """
        Return next chunk or None if the stream has ended.

        Raises the stream error once all chunks pushed before it were read.
        """
        while True:
            if self._buffer:
                chunk = self._buffer.popleft()
                self._buffered_bytes -= len(chunk)
                self._maybe_pull()
                return chunk

            if self._error is not None:
                raise self._error

            if self._ended or self._closed:
                return None

            self._schedule_pull()
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None

    async def read_all(self) -> bytes:
        """
        Read the stream to the end and return all data.
        """
        chunks: List[bytes] = []
        async for chunk in self:
            chunks.append(chunk)
        return b"".join(chunks)

    async def aclose(self) -> None:
        """
        Stop reading. Buffered data is dropped and the producer is terminated.
        """
        if self.finished:
            return

        self._closed = True
        self._buffer.clear()
        self._buffered_bytes = 0
        if self._producer is not None:
            self._producer.terminate()
        self._wakeup()

    def __aiter__(self) -> "ReadableStream":
        return self

    async def __anext__(self) -> bytes:
        chunk = await self.read()
        if chunk is None:
            raise StopAsyncIteration
        return chunk

    async def __aenter__(self) -> "ReadableStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    def _wakeup(self) -> None:
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    def _maybe_pull(self) -> None:
        if self._buffered_bytes < self._high_water_mark:
            self._schedule_pull()

    def _schedule_pull(self) -> None:
        if self._producer is None or self.finished or self._pull_scheduled:
            return

        self._pull_scheduled = True
        asyncio.get_running_loop().call_soon(self._pull)

    def _pull(self) -> None:
        self._pull_scheduled = False
        if self._producer is not None and not self.finished:
            self._producer.on_pull()

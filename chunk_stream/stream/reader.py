"""
Chunked sequential reader of files from a file store.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from chunk_stream import logging
from chunk_stream.config import parse_size_value
from chunk_stream.exceptions import (
    ConfigurationError,
    DecodeError,
    InitializationError,
    NotFoundError,
    NotInitializedError,
    ReadError,
    ReaderError,
)
from chunk_stream.store.base import FileStore, RawChunk
from chunk_stream.stream.codec import decode_chunk
from chunk_stream.stream.events import ProgressEvent
from chunk_stream.stream.host import DEFAULT_HIGH_WATER_MARK, PullProducer, ReadableStream

DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ReaderOptions:
    """
    Read session configuration.
    """

    position: int = 0
    chunk_size: int = DEFAULT_CHUNK_SIZE
    auto_init: bool = True

    def __post_init__(self) -> None:
        if not _is_int(self.position) or self.position < 0:
            raise ConfigurationError(
                f"Position must be a non-negative integer: {self.position!r}"
            )
        if not _is_int(self.chunk_size) or self.chunk_size <= 0:
            raise ConfigurationError(
                f"Chunk size must be a positive integer: {self.chunk_size!r}"
            )
        if not isinstance(self.auto_init, bool):
            raise ConfigurationError(f"auto_init must be boolean: {self.auto_init!r}")

    @classmethod
    def from_config(cls, config: dict) -> "ReaderOptions":
        """
        Build options from "reader" config section.
        """
        return cls(
            position=config.get("position", 0),
            chunk_size=parse_size_value(config.get("chunk_size", DEFAULT_CHUNK_SIZE)),
            auto_init=config.get("auto_init", True),
        )


class ChunkedFileReader(PullProducer):
    """
    Reads a file by consecutive range reads, one chunk per pull signal of the stream.

    At most one file store call is outstanding at any time. Once the reader is
    terminated (end of data, error or closed stream) it doesn't call the file store
    and doesn't emit events anymore; completions of calls issued earlier are discarded.
    """

    def __init__(
        self,
        uri: str,
        store: FileStore,
        sink: ReadableStream,
        options: Optional[ReaderOptions] = None,
        logger: Any = None,
    ) -> None:
        options = options or ReaderOptions()
        self._uri = uri
        self._store = store
        self._sink = sink
        self._chunk_size = options.chunk_size
        self._auto_init = options.auto_init
        self._logger = logger or logging.getLogger("chunk-stream")

        self._file_size = 0
        self._cursor = options.position
        self._initialized = False
        self._read_in_flight = False
        self._terminated = False
        self._error: Optional[ReaderError] = None
        self._init_task: Optional[asyncio.Future] = None
        self._task: Optional[asyncio.Future] = None

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def file_size(self) -> int:
        """
        File size in bytes. Zero until the reader is initialized.
        """
        return self._file_size

    @property
    def position(self) -> int:
        """
        Offset of the next byte to read.
        """
        return self._cursor

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def terminated(self) -> bool:
        return self._terminated

    def current_file_size(self) -> int:
        """
        Return cached file size (only valid after initialization).
        """
        return self._file_size

    def current_position(self) -> int:
        """
        Return current read position.
        """
        return self._cursor

    async def initialize(self) -> int:
        """
        Fetch file size from the file store.

        Must be called before reading if auto_init is disabled. Safe to call multiple
        times: the file store is asked only once.
        """
        if self._initialized:
            return self._file_size

        if self._init_task is None:
            if self._terminated:
                raise self._error or ReaderError(f"Reader is terminated: {self._uri}", self._uri)
            self._init_task = asyncio.ensure_future(self._fetch_file_size())

        return await asyncio.shield(self._init_task)

    def on_pull(self) -> None:
        # The flag stays set while a chunk is delivered, so pulls issued by
        # listeners during delivery are ignored.
        if self._terminated or self._read_in_flight:
            return

        if not self._initialized and self._init_task is None and not self._auto_init:
            self._fail(NotInitializedError(self._uri))
            return

        self._read_in_flight = True
        self._task = asyncio.ensure_future(self._pull_chunk())

    def terminate(self, error: Optional[BaseException] = None) -> None:
        if self._terminated:
            return

        if error is not None:
            if not isinstance(error, ReaderError):
                wrapped = ReaderError(str(error), self._uri)
                wrapped.__cause__ = error
                error = wrapped
            self._fail(error)
            return

        self._terminated = True
        self._logger.debug(
            "Reader of {} terminated at position {}", self._uri, self._cursor
        )

    async def _fetch_file_size(self) -> int:
        try:
            file_info = await self._store.stat(self._uri)
        except Exception as e:
            error = InitializationError(self._uri, str(e))
            self._fail(error, cause=e)
            raise error from e

        if self._terminated:
            raise self._error or ReaderError(f"Reader is terminated: {self._uri}", self._uri)

        if not file_info.exists:
            error = NotFoundError(self._uri)
            self._fail(error)
            raise error

        self._file_size = file_info.size or 0
        self._initialized = True

        if self._file_size == 0:
            self._logger.warning("File size is 0, path: {}", self._uri)

        if self._cursor > self._file_size:
            self._logger.warning(
                "Start position {} is past the end of {} ({} bytes), nothing to read",
                self._cursor,
                self._uri,
                self._file_size,
            )
            self._cursor = self._file_size

        self._logger.debug("Initialized reader of {}, size: {}", self._uri, self._file_size)
        return self._file_size

    async def _pull_chunk(self) -> None:
        try:
            if not self._initialized:
                try:
                    await self.initialize()
                except ReaderError:
                    # The reader is already terminated with this error.
                    return

            if self._terminated:
                return

            if self._cursor >= self._file_size:
                self._finish()
                return

            offset = self._cursor
            self._logger.debug(
                "Reading {} bytes of {} at position {}", self._chunk_size, self._uri, offset
            )
            try:
                raw_chunk = await self._store.read_range(self._uri, offset, self._chunk_size)
            except Exception as e:
                if not self._terminated:
                    self._fail(ReadError(self._uri, offset, str(e)), cause=e)
                return

            if self._terminated:
                self._logger.debug(
                    "Discarding chunk of {} at position {} read after termination",
                    self._uri,
                    offset,
                )
                return

            self._consume(raw_chunk, offset)
        finally:
            if self._task is asyncio.current_task():
                self._read_in_flight = False

    def _consume(self, raw_chunk: RawChunk, offset: int) -> None:
        try:
            data = decode_chunk(raw_chunk)
        except (TypeError, ValueError) as e:
            self._fail(DecodeError(self._uri, offset, self._file_size, str(e)), cause=e)
            return

        if not data:
            if self._cursor < self._file_size:
                self._logger.warning(
                    "Got empty chunk of {} at position {} while file size is {}, treating as end of file",
                    self._uri,
                    self._cursor,
                    self._file_size,
                )
            self._finish()
            return

        remaining = self._file_size - self._cursor
        if len(data) > remaining:
            self._logger.warning(
                "File {} grew after initialization, trimming chunk at position {} from {} to {} bytes",
                self._uri,
                offset,
                len(data),
                remaining,
            )
            data = data[:remaining]

        self._cursor += len(data)
        try:
            self._sink.push_data(data)
            self._sink.emit(
                ProgressEvent(
                    ratio=self._cursor / self._file_size,
                    bytes_read=self._cursor,
                    total_bytes=self._file_size,
                )
            )
        except Exception as e:
            self._fail(self._delivery_error(e), cause=e)

    def _finish(self) -> None:
        self._logger.debug("Finished reading {}, {} bytes", self._uri, self._file_size)
        try:
            self._sink.emit(
                ProgressEvent(ratio=1.0, bytes_read=self._file_size, total_bytes=self._file_size)
            )
        except Exception as e:
            self._fail(self._delivery_error(e), cause=e)
            return

        self._terminated = True
        try:
            self._sink.signal_end()
        except Exception:
            # The stream is ended before the listener is called, readers are not blocked.
            self._logger.exception("Stream listener failed on end of {}", self._uri)

    def _fail(self, error: ReaderError, cause: Optional[BaseException] = None) -> None:
        if self._terminated:
            return

        if cause is not None:
            error.__cause__ = cause
        self._terminated = True
        self._error = error
        self._logger.opt(exception=cause).debug("Reader of {} failed", self._uri)
        self._logger.error("{}", error)
        try:
            self._sink.signal_error(error)
        except Exception:
            self._logger.exception("Stream listener failed on error of {}", self._uri)

    def _delivery_error(self, cause: Exception) -> ReaderError:
        return ReaderError(f"Failed to deliver chunk: {cause} (path: {self._uri})", self._uri)


def create_read_stream(
    uri: str,
    store: FileStore,
    position: int = 0,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    auto_init: bool = True,
    high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
    logger: Any = None,
) -> Tuple[ReadableStream, ChunkedFileReader]:
    """
    Create a readable stream of the file and the reader feeding it.

    Example:
    ```
    stream, reader = create_read_stream("file:///data/large.bin", LocalFileStore())
    stream.subscribe(on_event)
    async for chunk in stream:
        ...
    ```
    """
    stream = ReadableStream(high_water_mark)
    reader = ChunkedFileReader(
        uri,
        store,
        stream,
        ReaderOptions(position=position, chunk_size=chunk_size, auto_init=auto_init),
        logger=logger,
    )
    stream.attach(reader)
    return stream, reader

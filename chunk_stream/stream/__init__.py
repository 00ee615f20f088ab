"""
Pull-based read streams over file stores.
"""

from .events import EndEvent, ErrorEvent, EventListener, ProgressEvent, StreamEvent
from .host import DEFAULT_HIGH_WATER_MARK, PullProducer, ReadableStream
from .reader import (
    DEFAULT_CHUNK_SIZE,
    ChunkedFileReader,
    ReaderOptions,
    create_read_stream,
)

"""
Events emitted by a read stream.
"""

from dataclasses import dataclass
from typing import Callable, Union


@dataclass(frozen=True)
class ProgressEvent:
    """
    Read progress after a chunk was pushed or the stream ended.
    """

    ratio: float
    bytes_read: int
    total_bytes: int


@dataclass(frozen=True)
class EndEvent:
    """
    All data was pushed to the stream.
    """


@dataclass(frozen=True)
class ErrorEvent:
    """
    Stream was terminated by an error.
    """

    error: BaseException


StreamEvent = Union[ProgressEvent, EndEvent, ErrorEvent]
EventListener = Callable[[StreamEvent], None]

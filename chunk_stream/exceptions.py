"""
Errors specific to chunk-stream.
"""


class ChunkStreamError(Exception):
    """
    Base class for chunk-stream related errors.
    """


class ConfigurationError(ChunkStreamError):
    """
    Configuration errors (e.g. invalid value of configuration parameter).
    """


class TerminatingSignal(ChunkStreamError):
    """
    Execution was interrupted by a signal.
    """


class ReaderError(ChunkStreamError):
    """
    Fatal error of a chunked read session. Terminates the reader.
    """

    def __init__(self, message: str, uri: str) -> None:
        super().__init__(message)
        self.uri = uri


class NotFoundError(ReaderError):
    """
    File doesn't exist.
    """

    def __init__(self, uri: str) -> None:
        super().__init__(f"File does not exist: {uri}", uri)


class InitializationError(ReaderError):
    """
    Failed to fetch file metadata for other reason than file absence.
    """

    def __init__(self, uri: str, reason: str = "") -> None:
        message = f"Failed to initialize stream: {uri}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, uri)


class NotInitializedError(ReaderError):
    """
    Read was requested before initialization while auto-initialization is disabled.
    """

    def __init__(self, uri: str) -> None:
        super().__init__(
            f"Stream is not initialized, call initialize() first or enable auto_init: {uri}",
            uri,
        )


class ReadError(ReaderError):
    """
    Range read of the file failed.
    """

    def __init__(self, uri: str, offset: int, reason: str = "") -> None:
        super().__init__(
            f"Failed to read file: {reason} (path: {uri}, position: {offset})", uri
        )
        self.offset = offset


class DecodeError(ReaderError):
    """
    Successfully fetched chunk could not be converted to bytes.
    """

    def __init__(self, uri: str, offset: int, file_size: int, reason: str = "") -> None:
        super().__init__(
            f"Failed to decode chunk: {reason} (position: {offset}, fileSize: {file_size})",
            uri,
        )
        self.offset = offset
        self.file_size = file_size

"""
Conversion of raw chunks returned by file stores to bytes.
"""

import base64

from chunk_stream.store.base import RawChunk


def decode_chunk(raw: RawChunk) -> bytes:
    """
    Convert raw chunk to bytes.

    Binary chunks are passed as is, text chunks are treated as base64-encoded data.
    Raises ValueError or TypeError if the chunk can't be decoded.
    """
    if isinstance(raw, bytes):
        return raw

    if isinstance(raw, (bytearray, memoryview)):
        return bytes(raw)

    if isinstance(raw, str):
        return base64.b64decode(raw, validate=True)

    raise TypeError(f"Unsupported chunk type: {type(raw).__name__}")

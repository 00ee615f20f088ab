"""
Package with definition of file stores providing metadata and range read API
for local filesystem and S3 in uniform way.
"""

from chunk_stream.exceptions import ConfigurationError

from .base import FileInfo, FileStore, RawChunk
from .local import LocalFileStore
from .s3 import S3FileStore

SUPPORTED_STORES = {
    "local": LocalFileStore,
    "s3": S3FileStore,
}


def get_file_store(config: dict) -> FileStore:
    """
    Return file store corresponding to passed in configuration.
    """
    try:
        store_id = config["type"]
    except KeyError:
        raise ConfigurationError("Storage type is missing in the config")

    try:
        store_cls = SUPPORTED_STORES[store_id]
    except KeyError:
        raise ConfigurationError(f'Unknown storage "{store_id}"')

    return store_cls(config)

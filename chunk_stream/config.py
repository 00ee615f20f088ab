"""
config module defines Config class and default values
"""

import copy
from typing import Any, Optional

import yaml
from humanfriendly import InvalidSize, parse_size
from loguru import logger

from chunk_stream.exceptions import ConfigurationError

DEFAULT_CONFIG = {
    "reader": {
        # Initial read position, in bytes.
        "position": 0,
        # Maximum number of bytes requested from the file store in one call.
        # Bounds memory used per read session.
        "chunk_size": parse_size("5 MiB"),
        # Fetch file metadata on the first pull. If disabled, initialize() must be
        # called explicitly before reading.
        "auto_init": True,
        # The stream keeps pulling while it buffers less than this number of bytes.
        "high_water_mark": parse_size("16 KiB"),
    },
    "storage": {
        "type": "local",
        "credentials": {
            "endpoint_url": None,
            "access_key_id": None,
            "secret_access_key": None,
            "bucket": None,
        },
        "boto_config": {
            "addressing_style": "auto",
            "region_name": "us-east-1",
        },
    },
    "loguru": {
        "formatters": {
            "chunk-stream": "{time:YYYY-MM-DD H:m:s,SSS} {process.id:5} [{level:8}] {extra[logger_name]}: {message}",
        },
        "handlers": {
            "chunk-stream": {
                "sink": "stderr",
                "level": "INFO",
                "format": "chunk-stream",
            },
            "botocore": {
                "sink": "stderr",
                "format": "chunk-stream",
                "filter": {
                    "botocore": "WARNING",
                    "urllib3.connectionpool": "WARNING",
                },
            },
        },
    },
}


class Config:
    """
    Config for all components
    """

    def __init__(self, config_file: Optional[str] = None) -> None:
        self._conf = copy.deepcopy(DEFAULT_CONFIG)
        if config_file:
            self._read_config(file_name=config_file)

    def _recursively_update(self, base_dict, update_dict):
        for key, value in update_dict.items():
            if isinstance(value, dict):
                if key not in base_dict:
                    base_dict[key] = {}
                self._recursively_update(base_dict[key], update_dict[key])
            else:
                base_dict[key] = value

    def merge(self, patch_dict):
        """
        Merge config with the patch.
        """
        self._recursively_update(self._conf, update_dict=patch_dict)
        return self._conf

    def _read_config(self, file_name):
        with open(file_name, "r", encoding="utf-8") as fileobj:
            try:
                custom_config = yaml.safe_load(fileobj)
                if custom_config:
                    self._recursively_update(self._conf, custom_config)
            except yaml.YAMLError as e:
                raise RuntimeError(f"Failed to load config file: {e}")

    def __getitem__(self, item):
        try:
            return self._conf[item]
        except KeyError:
            logger.critical('Config item "{}" was not defined', item)
            raise

    def __setitem__(self, item, value):
        self._conf[item] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Returns value by key or default
        """

        return self._conf.get(key, default)


def parse_size_value(value: Any) -> Any:
    """
    Convert human-readable size (e.g. "5 MiB") to number of bytes.

    Non-string values are returned as is.
    """
    if not isinstance(value, str):
        return value
    try:
        return parse_size(value, binary=True)
    except InvalidSize as e:
        raise ConfigurationError(f'"{value}" is not a valid size: {e}') from e

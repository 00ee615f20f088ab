"""
Logging module.
"""

import inspect
import logging
import sys
from typing import Any

import psutil
from loguru import logger

from chunk_stream.formatting import format_size

STANDARD_SINKS = {
    "stderr": sys.stderr,
    "stdout": sys.stdout,
}


class Filter:
    """
    Filter for luguru handler.
    """

    def __init__(self, name):
        self._name = name

    def __call__(self, record):
        """
        Filter callback to decide for each logged message whether it should be sent to the sink or not.
        """

        return record["extra"].get("logger_name") == self._name


def make_filter(name):
    """
    Factory for filter creation.
    """

    return Filter(name)


class InterceptHandler(logging.Handler):
    """
    Helper class for logging interception.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """
        Intercept all records from the logging module and redirect them into loguru.

        The handler for loguru will be chosen based on module name.
        """

        # Get corresponding Loguru level if it exists.
        level: int or str  # type: ignore
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message.
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.bind(logger_name=record.name).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


def configure(config_loguru: dict) -> None:
    """
    Configure logger.
    """
    loguru_handlers = []

    for name, value in config_loguru["handlers"].items():
        handler = {
            "sink": STANDARD_SINKS.get(value["sink"], value["sink"]),
            "format": config_loguru["formatters"][value["format"]],
            "diagnose": False,
        }
        # Queued writes are only useful for file sinks shared between processes.
        if handler["sink"] not in STANDARD_SINKS.values():
            handler["enqueue"] = True
        if "level" in value:
            handler["level"] = value["level"]

        if "filter" in value:
            handler["filter"] = dict(value["filter"])
            # A dict filter maps logger names to minimum levels; "" is the parent of all names.
            handler["filter"][""] = False
        else:
            handler["filter"] = make_filter(name)
        loguru_handlers.append(handler)

    logger.configure(handlers=loguru_handlers, activation=[("", True)])

    # Redirect standard logging (boto3, botocore) into loguru.
    logging.basicConfig(handlers=[InterceptHandler()], level=0)


def error(msg, *args, **kwargs):
    """
    Log a message with severity 'ERROR'.
    """
    _log("ERROR", msg, args, kwargs)


def exception(msg, *args, **kwargs):
    """
    Log a message with severity 'ERROR' with exception information.
    """
    kwargs.setdefault("exc_info", True)
    _log("ERROR", msg, args, kwargs)


def info(msg, *args, **kwargs):
    """
    Log a message with severity 'INFO'.
    """
    _log("INFO", msg, args, kwargs)


def memory_usage():
    """
    Log memory usage of the current process.

    Resident size of a chunked read should stay around chunk size
    regardless of file size.
    """
    try:
        memory_info = psutil.Process().memory_info()
        _log(
            "DEBUG",
            "Memory usage: {} (virtual: {})",
            (format_size(memory_info.rss), format_size(memory_info.vms)),
            {},
        )
    except psutil.Error:
        _log("WARNING", "Unable to get memory usage", (), {"exc_info": True})


def _log(level: str, msg: str, args: tuple, kwargs: dict) -> None:
    with_exception = kwargs.pop("exc_info", False)
    getLogger("chunk-stream").opt(exception=with_exception).log(level, msg, *args, **kwargs)


# pylint: disable=invalid-name
def getLogger(name: str) -> Any:
    """
    Get logger with specific name.
    """

    return logger.bind(logger_name=name)

# -*- coding: utf-8 -*-
"""
Command-line interface.
"""
import asyncio
import json
import signal
import sys
import typing
from collections import OrderedDict
from functools import wraps
from typing import BinaryIO, Iterable, Optional, Tuple

from click import Choice, Path, argument, pass_context
from cloup import Color, Context, HelpFormatter, HelpTheme, Style, group, option
from tabulate import tabulate

from . import logging
from .config import Config, parse_size_value
from .exceptions import ConfigurationError, ReaderError, TerminatingSignal
from .formatting import format_ratio, format_size
from .params import JsonParamType, Size
from .store import FileStore, get_file_store
from .stream import (
    DEFAULT_HIGH_WATER_MARK,
    ProgressEvent,
    ReaderOptions,
    StreamEvent,
    create_read_stream,
)
from .version import get_version


def signal_handler(signum, _frame):
    """
    Logs received signal. Useful for troubleshooting.
    """
    logging.info(f"Received signal {signum}")
    raise TerminatingSignal(f"Execution was interrupted by the signal {signum}")


signal.signal(signal.SIGTERM, signal_handler)
signal.signal(signal.SIGHUP, signal_handler)
signal.signal(signal.SIGINT, signal_handler)


@group(
    context_settings=Context.settings(
        help_option_names=["-h", "--help"],
        terminal_width=100,
        align_option_groups=False,
        align_sections=True,
        formatter_settings=HelpFormatter.settings(
            row_sep="",
            theme=HelpTheme(
                invoked_command=Style(fg=Color.bright_green),  # type: ignore
                heading=Style(fg=Color.bright_white, bold=True),  # type: ignore
                col1=Style(fg=Color.bright_yellow),  # type: ignore
                section_help=Style(italic=True),  # type: ignore
            ),
        ),
    )
)
@option(
    "-c",
    "--config",
    type=Path(exists=True, dir_okay=False),
    default=None,
    help="Configuration file path.",
)
@option(
    "--storage",
    type=Choice(["local", "s3"]),
    help="File store used to read files.",
)
@option(
    "--config-parameter",
    "config_parameters",
    multiple=True,
    type=(str, JsonParamType()),
    metavar="PATH VALUE",
    help="Paths and values to override chunk-stream config values. "
    'Path should contains a string with dot separated keys (e.g. "reader.chunk_size"). '
    "Value should be json-serializable string or plain value (string, true/false, number). "
    "Can be specified multiple times to override several settings.",
)
@pass_context
def cli(
    ctx: Context,
    config: Optional[str],
    storage: Optional[str],
    config_parameters: Iterable[Tuple[str, dict]],
) -> None:
    """Tool for bounded-memory chunked reading of files."""
    cfg = Config(config)
    if storage is not None:
        cfg["storage"]["type"] = storage

    if config_parameters:
        cli_cfg = _build_cli_cfg_from_config_parameters(config_parameters)
        cfg.merge(cli_cfg)

    logging.configure(cfg["loguru"])

    ctx.obj = {"config": cfg, "store": get_file_store(cfg["storage"])}


def command(*args, **kwargs):
    """
    Decorator for chunk-stream cli commands.
    """

    def decorator(f):
        @pass_context
        @wraps(f)
        def wrapper(ctx, *args, **kwargs):
            try:
                logging.info(
                    "Executing command '{}', params: {}, args: {}, version: {}",
                    ctx.command.name,
                    {
                        **ctx.parent.params,
                        **ctx.params,
                    },
                    ctx.args,
                    get_version(),
                )
                result = ctx.invoke(f, ctx, ctx.obj["store"], *args, **kwargs)
                logging.info("Command '{}' completed", ctx.command.name)
                return result
            except (ConfigurationError, ReaderError) as e:
                logging.error("Command '{}' failed: {}", ctx.command.name, e)
                ctx.exit(1)
            except (Exception, TerminatingSignal):
                logging.exception("Command '{}' failed", ctx.command.name)
                raise

        return cli.command(*args, **kwargs)(wrapper)

    return decorator


@command(name="stat")
@argument("uri")
@option(
    "--format",
    "format_",
    type=Choice(["table", "json"]),
    default="table",
    help='Output format. The default is "table" format.',
)
def stat_command(_ctx: Context, store: FileStore, uri: str, format_: str) -> None:
    """Show existence and size of a file."""
    file_info = asyncio.run(store.stat(uri))

    record: dict = OrderedDict(
        (
            ("uri", uri),
            ("exists", file_info.exists),
            ("size", file_info.size),
        )
    )
    if format_ == "json":
        json.dump(record, sys.stdout, indent=2)
        print()
    else:
        record["size"] = format_size(file_info.size)
        print(tabulate([record], headers="keys"))


@command(name="cat")
@argument("uri")
@option(
    "-o",
    "--output",
    type=Path(dir_okay=False, writable=True),
    help="Write file contents to the path instead of stdout.",
)
@option("--position", type=int, help="Start reading at the byte offset.")
@option("--chunk-size", type=Size(), help='Bytes per read call, e.g. "5 MiB".')
@option(
    "--no-auto-init",
    is_flag=True,
    help="Fetch file size explicitly before streaming instead of on the first read.",
)
@option("--progress", is_flag=True, help="Log read progress.")
# pylint: disable=too-many-positional-arguments
def cat_command(
    ctx: Context,
    store: FileStore,
    uri: str,
    output: Optional[str],
    position: Optional[int],
    chunk_size: Optional[int],
    no_auto_init: bool,
    progress: bool,
) -> None:
    """Stream file contents chunk by chunk."""
    reader_config = dict(ctx.obj["config"]["reader"])
    if position is not None:
        reader_config["position"] = position
    if chunk_size is not None:
        reader_config["chunk_size"] = chunk_size
    if no_auto_init:
        reader_config["auto_init"] = False

    if output:
        with open(output, "wb") as fobj:
            asyncio.run(_copy_file(store, uri, fobj, reader_config, progress))
    else:
        asyncio.run(_copy_file(store, uri, sys.stdout.buffer, reader_config, progress))

    logging.memory_usage()


async def _copy_file(
    store: FileStore, uri: str, fobj: BinaryIO, reader_config: dict, progress: bool
) -> None:
    options = ReaderOptions.from_config(reader_config)
    stream, reader = create_read_stream(
        uri,
        store,
        position=options.position,
        chunk_size=options.chunk_size,
        auto_init=options.auto_init,
        high_water_mark=parse_size_value(
            reader_config.get("high_water_mark", DEFAULT_HIGH_WATER_MARK)
        ),
    )

    def _on_event(event: StreamEvent) -> None:
        if progress and isinstance(event, ProgressEvent):
            logging.info(
                "Read {} of {} ({})",
                format_size(event.bytes_read),
                format_size(event.total_bytes),
                format_ratio(event.ratio),
            )

    stream.subscribe(_on_event)

    if not options.auto_init:
        await reader.initialize()

    async with stream:
        async for chunk in stream:
            fobj.write(chunk)

    fobj.flush()


def _build_cli_cfg_from_config_parameters(values: Iterable[Tuple[str, dict]]) -> dict:
    """
    Build config dict from specified keys and values in plain format.
    Duplicate keys are ignored in favor of the last entry.
    """

    def _split_key(key: str) -> typing.List[str]:
        return key.split(".")

    values_by_uniq_key: typing.Dict[str, dict] = {}
    for key, value in values:
        values_by_uniq_key[key] = value

    values_sorted = sorted(
        values_by_uniq_key.items(), key=lambda x: len(_split_key(x[0]))
    )

    result: dict = {}
    for key, value in values_sorted:
        path = _split_key(key)
        if not path:
            continue

        subresult = result
        for i, subkey in enumerate(path):
            if i != len(path) - 1 and not isinstance(subresult, dict):
                continue

            if i == len(path) - 1:
                subresult[subkey] = value
            elif subkey not in subresult:
                subresult[subkey] = {}
            subresult = subresult[subkey]

    return result

"""Process-wide logging setup for gateway cache tools.

Every log record goes to one RichHandler bound to the shared console, so
shard tables and log lines printed by the CLI interleave cleanly. A plain
text file handler can be added for long-running replays.

Usage:
    import logging
    from gateway_cache.utils.logging import setup_logging

    setup_logging(level=logging.DEBUG, log_file="replay.log")
    logging.getLogger(__name__).debug("save_channel %d", channel_id)

Components never configure logging themselves; only entry points call
setup_logging(), and only once.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


# Shared by RichHandler and every table or panel the CLI prints
console = Console()

# redis-py and httpx log every command and request at DEBUG
THIRD_PARTY_LOGGERS = ("redis", "httpx", "httpcore")

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_handler() -> logging.Handler:
    return RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )


def _file_handler(path: str | Path) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
    debug_third_party: bool = False,
) -> None:
    """Route all logging through the shared console.

    Args:
        level: Root logger level
        log_file: Also append plain-text records to this file
        debug_third_party: Keep redis/httpx DEBUG output instead of
            limiting those libraries to warnings
    """
    handlers = [_console_handler()]
    if log_file:
        handlers.append(_file_handler(log_file))

    # force=True replaces handlers from an earlier call instead of stacking them
    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)

    library_level = logging.DEBUG if debug_third_party else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

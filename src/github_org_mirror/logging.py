"""Loguru setup for the mirror.

Console output goes to stderr so ``--format json`` keeps stdout clean.
Standard library loggers (SQLAlchemy, httpx under githubkit) are routed
through loguru. Sync code binds ``repo``, ``node`` and ``run_id`` extras;
the file sink writes them out with every line.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOGGER_NAME = "orgmirror"

CONSOLE_FORMAT = (
    "<dim>{time:HH:mm:ss}</dim> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {extra} | {message}"

# stdlib logger -> (level when debugging, level otherwise)
LIBRARY_LEVELS: dict[str, tuple[int, int]] = {
    "sqlalchemy.engine": (logging.INFO, logging.WARNING),
    "httpx": (logging.DEBUG, logging.WARNING),
    "httpcore": (logging.DEBUG, logging.WARNING),
}

_configured = False


class InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru under the stdlib logger's name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # skip logging module frames so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(name=record.name).log(
            level, record.getMessage()
        )


def resolve_level(level: LogLevel, *, verbose: bool = False, quiet: bool = False) -> LogLevel:
    """Apply the CLI overrides; --verbose wins over --quiet."""
    if verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return level


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> Logger:
    """Replace every loguru sink with the mirror's console (and optional file) sinks.

    Args:
        level: Console level from settings
        verbose: Force DEBUG
        quiet: Force WARNING
        log_file: Also log everything at DEBUG to this rotating file
        rotation: Loguru rotation spec for the file sink
        retention: Loguru retention spec for the file sink
        serialize: Write the file sink as JSON lines

    Returns:
        The configured loguru logger
    """
    global _configured

    console_level = resolve_level(level, verbose=verbose, quiet=quiet)

    logger.remove()
    logger.configure(extra={"name": DEFAULT_LOGGER_NAME})
    logger.add(
        sys.stderr,
        level=console_level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )
    if log_file:
        _add_file_sink(log_file, rotation=rotation, retention=retention, serialize=serialize)

    _route_stdlib(debugging=console_level in ("TRACE", "DEBUG"))

    _configured = True
    return logger


def _add_file_sink(path: Path, *, rotation: str, retention: str, serialize: bool) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        path,
        level="DEBUG",
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="gz",
        serialize=serialize,
    )


def _route_stdlib(*, debugging: bool) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, (debug_level, normal_level) in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(debug_level if debugging else normal_level)


def get_logger(name: str) -> Logger:
    """Logger with ``name`` bound, typically ``get_logger(__name__)``."""
    return logger.bind(name=name)


def bind_repo(name_with_owner: str) -> Logger:
    """Logger for per-repository collection, e.g. ``bind_repo("prebid/Prebid.js")``."""
    return logger.bind(name="sync", repo=name_with_owner)


def bind_node(node_id: str) -> Logger:
    """Logger for a single-node resync."""
    return logger.bind(name="resync", node=node_id)


class LogContext:
    """Bind extras to every record logged inside the block, including from other modules.

    Usage:
        with LogContext(run_id=12):
            await orchestrator.run()
    """

    def __init__(self, **context: Any) -> None:
        self._context = context
        self._manager: Any = None

    def __enter__(self) -> Logger:
        self._manager = logger.contextualize(**self._context)
        self._manager.__enter__()
        return logger

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._manager is not None:
            self._manager.__exit__(exc_type, exc_val, exc_tb)
            self._manager = None


def is_configured() -> bool:
    return _configured


def reset_logging() -> None:
    """Remove every sink (tests and repeated CLI invocations)."""
    global _configured
    logger.remove()
    _configured = False

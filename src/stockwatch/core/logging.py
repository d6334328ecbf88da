"""
Logging for StockWatch.

Everything logs under the ``stockwatch`` logger. setup_logging() attaches
a Rich console handler for the terminal and, optionally, a JSON-lines
file handler. Poll cycles log through a ContextualLogger so every line
carries the source name and run id.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console

ROOT_LOGGER = "stockwatch"

# Extra record attributes copied into JSON log lines
CONTEXT_FIELDS = ("source", "run_id", "url", "inserted", "pushed")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "default",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine")

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# =============================================================================
# Formatters and handlers
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's creation time."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(payload, default=str).decode("utf-8")


class RichConsoleHandler(logging.Handler):
    """Colour log lines by level and prefix them with the poll context."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    @staticmethod
    def _prefix(record: logging.LogRecord) -> str:
        tags = []
        source = getattr(record, "source", None)
        if source and source != "-":
            tags.append(f"[cyan]\\[{escape(str(source))}][/cyan]")
        run_id = getattr(record, "run_id", None)
        if run_id:
            tags.append(f"[dim]\\[{escape(str(run_id))}][/dim]")
        return " ".join(tags) + " " if tags else ""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = LEVEL_STYLES.get(record.levelno, "default")
            self.console.print(
                f"{self._prefix(record)}[{style}]{escape(self.format(record))}[/{style}]",
                markup=True,
                highlight=False,
            )
            if record.exc_info:
                self.console.print_exception()
        except Exception:
            self.handleError(record)


def _console_handler(level: int, rich_console: bool) -> logging.Handler:
    if rich_console:
        handler: logging.Handler = RichConsoleHandler(level=level)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
        handler.setLevel(level)
    return handler


def _file_handler(path: Path, json_format: bool) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


# =============================================================================
# Setup
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the ``stockwatch`` logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR)
        log_file: JSON-lines (or plain) log file; the file gets every level
        json_format: Write the file as JSON lines
        rich_console: Use Rich for the console, plain stderr otherwise

    Returns:
        The ``stockwatch`` logger
    """
    numeric_level = getattr(logging, level.upper())

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.setLevel(logging.DEBUG if log_file else numeric_level)
    logger.addHandler(_console_handler(numeric_level, rich_console))
    if log_file:
        logger.addHandler(_file_handler(Path(log_file), json_format))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under the ``stockwatch`` namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


# =============================================================================
# Contextual logging
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Adds ``source`` and ``run_id`` to every record it emits."""

    def __init__(
        self,
        logger: logging.Logger,
        source: str | None = None,
        run_id: str | None = None,
    ):
        super().__init__(logger, {})
        self.source = source
        self.run_id = run_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        if self.source:
            extra["source"] = self.source
        if self.run_id:
            extra["run_id"] = self.run_id
        kwargs["extra"] = extra
        return msg, kwargs


def get_contextual_logger(
    name: str | None = None,
    source: str | None = None,
    run_id: str | None = None,
) -> ContextualLogger:
    return ContextualLogger(get_logger(name), source=source, run_id=run_id)

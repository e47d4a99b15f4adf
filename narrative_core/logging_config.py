"""
Logging for the narrative engine.

Engine modules log through ``get_logger`` under the ``narrative`` tree and
attach the story slug and tick to each record with ``story_context``:

    logger.info("rule TR1 fired", extra=story_context("twenty-years", 12))

renders as

    12:04:51 INFO    rules [twenty-years t=12] rule TR1 fired

Nothing is printed until ``setup_logging`` installs handlers; the library
itself only registers a ``NullHandler``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Literal, Optional

ROOT_LOGGER = "narrative"

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def story_context(story: str, tick: Optional[int] = None) -> dict[str, Any]:
    """``extra`` mapping that tags a record with its story and tick."""
    return {"story": story, "tick": tick}


class NarrativeFormatter(logging.Formatter):
    """Short logger names plus a ``[story t=N]`` tag when the record has one."""

    def __init__(self, include_date: bool = False):
        datefmt = "%Y-%m-%d %H:%M:%S" if include_date else "%H:%M:%S"
        super().__init__("%(asctime)s %(levelname)-7s %(shortname)s%(context)s %(message)s", datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        record.shortname = record.name.rsplit(".", 1)[-1]
        story = getattr(record, "story", None)
        tick = getattr(record, "tick", None)
        if story is None:
            record.context = ""
        elif tick is None:
            record.context = f" [{story}]"
        else:
            record.context = f" [{story} t={tick}]"
        return super().format(record)


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    log_dir: str | Path | None = None,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: str = "narrative.log",
) -> logging.Logger:
    """Install handlers on the ``narrative`` logger, replacing earlier ones.

    Console output goes to stderr so that it never interleaves with the
    story transcript on stdout. A file is written only when ``log_dir`` is
    given and ``file_output`` is true; file records carry the full date.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(NarrativeFormatter())
        root.addHandler(console)

    if file_output and log_dir is not None:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path / log_filename, encoding="utf-8")
        file_handler.setFormatter(NarrativeFormatter(include_date=True))
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``narrative.`` namespace (``"engine.session"`` -> ``narrative.engine.session``)."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_operation(logger: logging.Logger, operation: str, story: str, tick: Optional[int] = None, **details: Any) -> None:
    """INFO record for a session-level operation, details as key=value."""
    detail_str = ", ".join(f"{k}={v}" for k, v in details.items())
    logger.info(f"{operation}: {detail_str}" if detail_str else operation, extra=story_context(story, tick))


def log_error(logger: logging.Logger, operation: str, error: Exception, story: str, tick: Optional[int] = None) -> None:
    """ERROR record with traceback for a failed operation."""
    logger.error(f"{operation} failed: {type(error).__name__}: {error}", exc_info=error, extra=story_context(story, tick))

"""structlog configuration for the studio proxy."""

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog


_log_stream: TextIO | None = None


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def setup_logging(
    json_logs: bool = False,
    log_level_name: str = "INFO",
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog for console or JSON output.

    Args:
        json_logs: Render each event as one JSON object per line
        log_level_name: Minimum level name, e.g. "DEBUG" or "INFO"
        log_file: Append to this file instead of writing to stdout
    """
    global _log_stream

    level = logging.getLevelNamesMapping().get(log_level_name.upper(), logging.INFO)

    if _log_stream is not None and _log_stream is not sys.stdout:
        _log_stream.close()
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        _log_stream = path.open("a", encoding="utf-8")
    else:
        _log_stream = sys.stdout

    renderer: structlog.types.Processor
    if json_logs or log_file:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=_log_stream.isatty())

    structlog.configure(
        processors=[*_shared_processors(), renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=_log_stream),
        cache_logger_on_first_use=False,
    )

    # uvicorn and httpx log through the standard library
    logging.basicConfig(
        level=level, stream=_log_stream, format="%(message)s", force=True
    )

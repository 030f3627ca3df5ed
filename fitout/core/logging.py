"""Structured logging for the web app.

structlog events and standard library records (services, uvicorn) share
one processor chain and are rendered by the same formatter, as JSON lines
or as console text.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

LOG_FORMATS = ("json", "text")
LOG_FILE = Path("logs/fitout.log")

# Handlers installed by configure_logging, replaced on reconfiguration
_handlers: list[logging.Handler] = []


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering both structlog and stdlib records.

    Raises:
        ValueError: If ``log_format`` is not ``json`` or ``text``
    """
    log_format = (log_format or "").strip().lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got {log_format!r}")

    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def configure_logging(log_format: str = "text", log_level: str = "INFO") -> None:
    """Configure structlog and the root logger from the app settings.

    Safe to call again; handlers from an earlier call are replaced.
    """
    formatter = build_formatter(log_format)

    structlog.configure(
        processors=_shared_processors() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if LOG_FILE.parent.is_dir():
        handlers.append(logging.FileHandler(LOG_FILE))

    root = logging.getLogger()
    for handler in _handlers:
        root.removeHandler(handler)
        handler.close()
    _handlers[:] = handlers
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(log_level.upper())

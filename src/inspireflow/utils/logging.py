"""
InspireFlow · Structured Logging Setup.

The engine only emits events; the host application decides where they go.
Hosts call ``configure_logging(settings)`` once at startup, which applies the
``logging`` section of WorkflowSettings. Console output is coloured unless
``json_logs`` is set; the rotating file under ``<home>/logs`` is always JSON.

Usage in every module:
    from inspireflow.utils.logging import get_logger
    log = get_logger(__name__)
    log.info("node_completed", node_id=node.id)

Every event emitted during ``WorkflowExecutor.run`` carries the run's
``run_id`` through structlog's contextvars.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from pathlib import Path

    from inspireflow.config import WorkflowSettings

LOG_FILE_NAME = "inspireflow.jsonl"

# Provider traffic is logged by the adapters themselves
_QUIET_LOGGERS = ("httpx", "httpcore")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def setup_logging(
    *,
    level: str = "INFO",
    log_dir: Path | None = None,
    json_logs: bool = False,
    console: bool = True,
) -> None:
    """Route structlog through stdlib handlers.

    Args:
        level: Level for the console handler (DEBUG, INFO, WARNING, ERROR).
        log_dir: Directory for the rotating JSONL file. None = no file.
        json_logs: Render console output as JSON too.
        console: Write to stderr.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = []

    console_renderer: structlog.types.Processor
    if json_logs:
        console_renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        console_renderer = structlog.dev.ConsoleRenderer(colors=True)

    if console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setLevel(log_level)
        stream.setFormatter(_formatter(console_renderer))
        handlers.append(stream)

    # 5 MB x 3 backups, always DEBUG so polling and payload events are kept
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer(ensure_ascii=False)))
        handlers.append(file_handler)

    root_level = logging.DEBUG if log_dir is not None else log_level
    logging.basicConfig(format="%(message)s", level=root_level, handlers=handlers, force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: WorkflowSettings) -> None:
    """Apply ``settings.logging``, with the log file under ``settings.log_dir``."""
    setup_logging(
        level=settings.logging.level,
        log_dir=settings.log_dir if settings.logging.file else None,
        json_logs=settings.logging.json_logs,
        console=settings.logging.console,
    )


def _formatter(renderer: structlog.types.Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


# ── Run context ──────────────────────────────────────────────────

def bind_context(**kwargs: Any) -> None:
    """Attach values (e.g. ``run_id``) to every following log event."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove ``keys`` from the bound context, keeping the caller's values."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Drop every bound value."""
    structlog.contextvars.clear_contextvars()

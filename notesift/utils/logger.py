"""
Logging configuration for notesift
"""

import logging
from pathlib import Path
from typing import Any, cast

import structlog
from rich.console import Console
from rich.logging import RichHandler

from notesift.config import Settings, get_settings


def _handlers(log_file: Path | None) -> list[logging.Handler]:
    # stderr only: stdout carries search results
    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    ]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def _renderer(settings: Settings) -> structlog.types.Processor:
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(log_file: Path | None = None) -> None:
    """Route structlog events through stdlib logging and a rich handler.

    Development environments log at DEBUG regardless of ``log_level``.
    """
    settings = get_settings()
    level = (
        logging.DEBUG
        if settings.is_development
        else getattr(logging, settings.log_level.upper(), logging.INFO)
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=_handlers(log_file),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _renderer(settings),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return cast("structlog.stdlib.BoundLogger", structlog.get_logger(name))


def log_search_event(event: str, **kwargs: Any) -> None:
    """Log a search lifecycle event on the shared ``search`` logger."""
    get_logger("search").info(event, **kwargs)


def preview_text(content: str, max_length: int = 50) -> str:
    """Collapse whitespace and shorten text for log output."""
    flattened = " ".join(content.split())
    if len(flattened) <= max_length:
        return flattened
    return flattened[:max_length] + "..."

"""Utility modules for notesift"""

from .logger import (
    get_logger,
    log_search_event,
    setup_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_search_event",
]

from typing import Any, cast

import structlog


class LoggerMixin:
    """Mixin class to add logging capabilities to any class.

    Subclasses override ``_log_context`` to bind fields (vault path, search
    id) onto every event they emit.
    """

    def _log_context(self) -> dict[str, Any]:
        return {}

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Get logger instance for this class"""
        logger = structlog.get_logger(self.__class__.__name__)
        context = self._log_context()
        if context:
            logger = logger.bind(**context)
        return cast("structlog.stdlib.BoundLogger", logger)

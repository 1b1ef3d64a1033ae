"""Correlation-aware logging for htmlview.

Every record emitted through a ``CorrelationLogger`` carries the ``component`` that
produced it and the ``correlation_id`` of the parse call, so the records of one
document can be filtered out of a shared log.
"""

import logging
from typing import Any, Dict, Optional


class CorrelationLogger:
    """Wraps a standard logger and stamps records with parse context."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: ID of the parse call the records belong to
            component: Component name; defaults to the last part of ``name``
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.rsplit(".", 1)[-1]

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]],
             exc_info: bool) -> None:
        fields: Dict[str, Any] = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            fields.update(extra)
        self.logger.log(level, message, extra=fields, exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None,
              exc_info: bool = False) -> None:
        self._log(logging.DEBUG, message, extra, exc_info)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None,
             exc_info: bool = False) -> None:
        self._log(logging.INFO, message, extra, exc_info)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None,
                exc_info: bool = False) -> None:
        self._log(logging.WARNING, message, extra, exc_info)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None,
              exc_info: bool = True) -> None:
        self._log(logging.ERROR, message, extra, exc_info)

    def exception(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log(logging.ERROR, message, extra, True)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger for ``name``."""
    return CorrelationLogger(name, correlation_id, component)

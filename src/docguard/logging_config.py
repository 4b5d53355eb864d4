"""
Logging configuration for docguard.

Library modules only create loggers (logging.getLogger(__name__)); they never
configure handlers. Hosts and the CLI call configure_logging() once:

    from docguard.logging_config import configure_logging

    configure_logging(level="DEBUG")                  # rich console output
    configure_logging(level="INFO", json_output=True) # one JSON object per line

Logs go to stderr so command output on stdout stays machine-readable.
"""

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "docguard"


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter.

    Outputs one JSON object per line. Fields passed with extra={...} are
    copied to the top level, so a decision line carries its outcome, rule,
    collection, document_id, uid and operation as separate keys.
    """

    # Attributes every LogRecord has; anything else came from extra=.
    _RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in self._RECORD_ATTRS
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "WARNING", *, json_output: bool = False) -> logging.Logger:
    """
    Configure the docguard logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Emit JSON lines instead of rich console output

    Returns:
        The configured "docguard" logger
    """
    if json_output:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers = [handler]
    logger.propagate = False
    return logger

"""Configure application logging using the Python standard library.

Sets up the root logger with a console handler and a rotating file
handler.  Records are formatted as JSON with the fields ``timestamp``,
``level``, ``module``, ``message``, the optional ``customer`` and any
keys passed in an ``extra`` dict, e.g.::

    logger.info("Checkout completed",
                extra={"customer": "Ahmed", "extra": {"amount": 1580.0}})
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, UTC
from typing import Optional, TextIO

LOG_FILE_NAME = "checkout.log"


class JsonFormatter(logging.Formatter):
    """Format log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
        }
        if hasattr(record, "customer"):
            log_record["customer"] = getattr(record, "customer")
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            # Merge into the top level rather than nesting under "extra"
            log_record.update(extra)
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(
    log_dir: str = "logs",
    level: int = logging.INFO,
    console_stream: Optional[TextIO] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.handlers.RotatingFileHandler:
    """Route every record through :class:`JsonFormatter` to the console and ``checkout.log``.

    Handlers already on the root logger are replaced.  The console handler
    writes to ``console_stream`` (stderr by default) so that receipts,
    which go to stdout, are never interleaved with log lines.

    Args:
        log_dir: Directory for ``checkout.log``; created when missing.
        level: Level applied to the root logger and both handlers.
        console_stream: Stream for the console handler.
        max_bytes: Size at which ``checkout.log`` is rotated.
        backup_count: Number of rotated files kept.

    Returns:
        The file handler, so callers can flush or close it.
    """
    os.makedirs(log_dir, exist_ok=True)
    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(console_stream or sys.stderr)
    file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(log_dir, LOG_FILE_NAME),
        maxBytes=max_bytes,
        backupCount=backup_count,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)
    for handler in (console_handler, file_handler):
        handler.setFormatter(formatter)
        handler.setLevel(level)
        root.addHandler(handler)
    return file_handler

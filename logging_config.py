"""Logging configuration for the consent application.

Messages follow a "[TAG] message" convention (e.g. "[CONSENT] ...").
- PlainFormatter: human-readable lines on stderr (default)
- JSONFormatter: one JSON object per line, with the tag split out
"""

import json
import logging
import re
import sys

from config import SERVICE_NAME

TAG_PATTERN = re.compile(r'\[([A-Z_]+)\]\s*(.*)', re.DOTALL)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def to_dict(self, record: logging.LogRecord) -> dict:
        # Extract tag from message if present: [TAG] message
        tag = None
        message = record.getMessage()
        tag_match = TAG_PATTERN.match(message)
        if tag_match:
            tag = tag_match.group(1)
            message = tag_match.group(2)

        log_entry = {
            "service": self.service,
            "level": record.levelname,
            "tag": tag,
            "message": message,
            "module": record.module,
            "extra": {
                "logger": record.name,
                "function": record.funcName,
                "line": record.lineno,
            }
        }

        if record.exc_info:
            log_entry["extra"]["exception"] = self.formatException(record.exc_info)

        return log_entry

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self.to_dict(record))


class PlainFormatter(logging.Formatter):
    """Plain text formatter for stderr output (local debugging)."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(level: str = "INFO", fmt: str = "plain") -> logging.Logger:
    """Configure the root logger.

    Args:
        level: Log level name.
        fmt: "plain" or "json".

    Returns:
        Configured root logger.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(JSONFormatter() if fmt == "json" else PlainFormatter())
    root_logger.addHandler(stderr_handler)

    # Suppress noisy HTTP client logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root_logger

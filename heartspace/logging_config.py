"""
HeartSpace Logging Configuration

Every logger hangs off the ``heartspace`` root so handlers are installed once.
Records carry keyword context, plus the id of the request being served when
one is active.
"""
import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROOT_LOGGER = "heartspace"

LOG_LEVEL = os.environ.get("HEARTSPACE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("HEARTSPACE_LOG_FORMAT", "json")  # json or text

# Set by RequestLoggingMiddleware for the lifetime of one request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = request_id
        entry.update(getattr(record, "context", {}))
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured single-line output for local development"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    DIM = "\033[90m"
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}{clock} {record.levelname:<7}{self.RESET} {record.name}: {record.getMessage()}"

        context = dict(getattr(record, "context", {}))
        trace = context.pop("traceback", None)
        request_id = getattr(record, "request_id", None)
        if request_id:
            context = {"req": request_id, **context}
        if context:
            line += f" {self.DIM}" + " ".join(f"{k}={v}" for k, v in context.items()) + self.RESET
        if trace:
            line += "\n" + trace.rstrip()
        return line


def configure_logging(level: str = LOG_LEVEL, fmt: str = LOG_FORMAT) -> logging.Logger:
    """Install the stdout handler on the root HeartSpace logger.

    Safe to call more than once; the previous handler is replaced.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ConsoleFormatter())
    root.handlers = [handler]
    return root


class StructuredLogger:
    """Thin wrapper taking keyword context instead of format args.

    ``bind`` returns a logger that adds the given fields to every record:

        log = get_logger("sessions").bind(session_id=7)
        log.info("Joined", user_id=3)
    """

    def __init__(self, name: str, bound: Optional[Dict[str, Any]] = None):
        self.name = name
        self.logger = logging.getLogger(name)
        self.bound = bound or {}

    def bind(self, **context) -> "StructuredLogger":
        return StructuredLogger(self.name, {**self.bound, **context})

    def _log(self, level: int, message: str, context: Dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(
            level,
            message,
            extra={"context": {**self.bound, **context}, "request_id": request_id_var.get()},
        )

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, context)

    def error(self, message: str, error: Optional[BaseException] = None, **context):
        if error is not None:
            context["error_type"] = type(error).__name__
            context["error_message"] = str(error)
            context["traceback"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        self._log(logging.ERROR, message, context)


configure_logging()

api_logger = StructuredLogger(f"{ROOT_LOGGER}.api")
db_logger = StructuredLogger(f"{ROOT_LOGGER}.db")


def get_logger(name: str) -> StructuredLogger:
    """Logger named ``heartspace.<name>``"""
    return StructuredLogger(f"{ROOT_LOGGER}.{name}")

"""
Structured logging for promptkit.

Every record is JSON with the same queryable fields: ts, level, module,
action, msg, plus whatever context the call site passes.

USAGE
=====
from promptkit.utils.logging import log, get_logger, configure_logging

MODULE = "prompts.template"
logger = get_logger()

log.debug(logger, MODULE, "render_done", "Template rendered",
          version=template.version, length=len(text))

log.warning(logger, MODULE, "rollback_failed", "Version not in history",
            version=5, available=[3, 2, 1])

Applications call configure_logging() once at startup. The library itself
never installs handlers.

ACTION NAMING
=============
  *_start      beginning of an operation
  *_done       successful completion
  *_failed     error/failure
  *_skipped    intentionally skipped
  *_fallback   falling back to alternative path
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

LOGGER_NAME = "promptkit"

_BASE_FIELDS = ("ts", "level", "module", "action", "msg")


class StructuredFormatter(logging.Formatter):
    """JSON formatter; ``pretty=True`` gives a one-line human format.

    Records from other libraries get ``action="log"`` and their logger
    name as ``module``.
    """

    def __init__(self, pretty: bool = False):
        super().__init__()
        self.pretty = pretty

    def format(self, record: logging.LogRecord) -> str:
        structured = getattr(record, "_structured", False)
        data = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "module": record._module if structured else record.name,
            "action": record._action if structured else "log",
            "msg": record.getMessage(),
        }
        if structured:
            data.update(record._extra)

        if self.pretty:
            return self._pretty(data)
        return json.dumps(data, default=str, separators=(",", ":"))

    def _pretty(self, data: dict) -> str:
        ctx = " ".join(f"{k}={v}" for k, v in data.items() if k not in _BASE_FIELDS)
        line = "{} {} [{}] {}: {}".format(
            data["ts"][11:23],
            data["level"][0],
            data["module"].upper()[:16].ljust(16),
            data["action"],
            data["msg"],
        )
        return f"{line} | {ctx}" if ctx else line


class StructuredLogger:
    """
    Structured logging at the two levels the library emits.

    Both methods take a stdlib logger, module name, action name, message,
    and arbitrary context fields. Context fields set to None are dropped.
    """

    def _log(self, logger: logging.Logger, level: int, module: str,
             action: str, msg: str, **kwargs) -> None:
        if not logger.isEnabledFor(level):
            return
        logger.log(level, msg, extra={
            "_structured": True,
            "_module": module,
            "_action": action,
            "_extra": {k: v for k, v in kwargs.items() if v is not None},
        })

    def warning(self, logger: logging.Logger, module: str, action: str,
                msg: str, **kwargs) -> None:
        self._log(logger, logging.WARNING, module, action, msg, **kwargs)

    def debug(self, logger: logging.Logger, module: str, action: str,
              msg: str, **kwargs) -> None:
        self._log(logger, logging.DEBUG, module, action, msg, **kwargs)


# Singleton instance, import this everywhere
log = StructuredLogger()

_library_logger: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Get the shared ``promptkit`` logger."""
    global _library_logger
    if _library_logger is None:
        _library_logger = logging.getLogger(LOGGER_NAME)
        _library_logger.addHandler(logging.NullHandler())
    return _library_logger


def configure_logging() -> None:
    """Configure root logger with structured formatter. Call once at startup.

    Reads from environment:
      LOG_FORMAT: "json" (default) or "pretty" (for development)
      LOG_LEVEL: "INFO" (default), "DEBUG", "WARNING", "ERROR"
    """
    pretty = os.environ.get("LOG_FORMAT", "json") == "pretty"
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(pretty=pretty))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    # LangChain is extremely chatty at DEBUG
    logging.getLogger("langchain").setLevel(logging.WARNING)
    logging.getLogger("langchain_core").setLevel(logging.WARNING)

    # tiktoken pulls encodings over HTTP on first use
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

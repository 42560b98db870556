"""Centralized logging configuration.

Text logs for interactive use, JSON logs when the pipeline output is collected
by another tool. ``setup_logging`` leaves pre-configured root handlers alone
unless explicitly told to replace them.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Mapping
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from infra.config import get_settings

# Values attached to every JSON log line of the current run (run_id, table, ...)
run_ctx: ContextVar[dict[str, Any] | None] = ContextVar("run_ctx", default=None)

_STANDARD_RECORD_ATTRS = frozenset(
    {
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
        "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
        "relativeCreated", "thread", "threadName", "processName", "process", "taskName",
    }
)


def set_run_context(**kwargs: Any) -> None:
    """Merge values into the run context."""
    current = dict(run_ctx.get() or {})
    current.update(kwargs)
    run_ctx.set(current)


def clear_run_context() -> None:
    run_ctx.set({})


def get_run_context() -> dict[str, Any]:
    """Get a copy of the current run context."""
    ctx = run_ctx.get()
    return dict(ctx) if ctx else {}


def _utc_iso8601() -> str:
    # Example: 2026-01-24T18:03:12.123Z
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with `extra=` keys and run context merged in."""

    def __init__(self, *, extra_fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._extra_fields = dict(extra_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "timestamp": _utc_iso8601(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS and key not in base:
                base[key] = value

        for key, value in self._extra_fields.items():
            base.setdefault(key, value)

        for key, value in get_run_context().items():
            base.setdefault(key, value)

        if record.exc_info:
            base["exception"] = self.formatException(record.exc_info)

        return json.dumps(base, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-friendly logs, UTC timestamps."""

    converter = time.gmtime

    def __init__(self) -> None:
        super().__init__("%(asctime)sZ | %(levelname)s | %(name)s | %(message)s")


class StructuredLogger:
    """
    Event-style logger.

    Usage:
        log = StructuredLogger(__name__)
        set_run_context(run_id="run-...")
        log.info("csv_loaded", rows=3731, table="inventory")

    Keyword arguments travel as `extra=` fields (visible in JSON logs) and are
    also appended to the text message as ``key=value`` pairs.
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event: str, exc_info: bool = False, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        suffix = " ".join(f"{k}={v}" for k, v in kwargs.items())
        message = f"{event} {suffix}" if suffix else event
        self._logger.log(level, message, extra={"event": event, **kwargs}, exc_info=exc_info)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._log(logging.INFO, event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, event, **kwargs)

    def exception(self, event: str, **kwargs: Any) -> None:
        """Log at ERROR with the active exception attached."""
        self._log(logging.ERROR, event, exc_info=True, **kwargs)


def setup_logging(
    *,
    level: str | None = None,
    json_logs: bool | None = None,
    override_root_handlers: bool | None = None,
    extra_fields: Mapping[str, Any] | None = None,
) -> None:
    """
    Configure the root logger.

    Env vars (see infra.config):
      - INVSNAP_LOG_LEVEL / LOGGING__LEVEL: DEBUG|INFO|WARNING|ERROR (default INFO)
      - INVSNAP_LOG_JSON / LOGGING__JSON_LOGS: 1/0 (default 0)
      - INVSNAP_LOG_OVERRIDE / LOGGING__OVERRIDE_ROOT_HANDLERS: 1/0 (default 0)
    Explicit arguments take precedence over the environment.
    """
    config = get_settings(reload=True).logging

    resolved_level = (level or config.level).upper()
    use_json = json_logs if json_logs is not None else config.json_logs
    override = override_root_handlers if override_root_handlers is not None else config.override_root_handlers

    root = logging.getLogger()
    root.setLevel(getattr(logging, resolved_level, logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter(extra_fields=extra_fields) if use_json else TextFormatter())

    if override:
        for existing in list(root.handlers):
            root.removeHandler(existing)
        root.addHandler(handler)
    elif not root.handlers:
        root.addHandler(handler)

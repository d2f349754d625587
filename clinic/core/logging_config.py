"""
Centralized logging configuration for the clinic scheduling backend.

Structured records carry their details under ``extra={"context": {...}}``.
Setup installs:
- a colored console formatter for development, JSON in production
- rotating JSON files under ``logs/`` (all records, and errors only)
- a request-id filter so every record logged while serving a request can
  be correlated with the access log line
- optional slow-query logging for SQLAlchemy

Usage:
    from clinic.core.logging_config import setup_logging, get_logger

    # In main.py
    setup_logging(app, log_level="INFO")

    # In any module
    logger = get_logger(__name__)
    logger.info("Appointment scheduled", extra={"context": {"doctor_id": 7}})
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from flask import Flask, g, has_request_context, request
from sqlalchemy import event
from sqlalchemy.engine import Engine

LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"
ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_BACKUPS = 5

# Current slow-query threshold; None disables the timing listeners' output
_slow_query_ms: Optional[float] = None


class RequestContextFilter(logging.Filter):
    """Stamp records with the id of the request being served, if any."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = (
                g.get("request_id") if has_request_context() else None
            )
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the record's context dict inlined."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = request_id
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line format; context is appended as key=value pairs."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def _rotating_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=ROTATE_BYTES, backupCount=ROTATE_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def _file_handlers(level: int, problems: List[str]) -> List[logging.Handler]:
    """Build the file handlers; failures are reported and skipped."""
    try:
        LOG_DIR.mkdir(exist_ok=True)
        return [
            _rotating_handler(LOG_DIR / "app.log", level),
            _rotating_handler(LOG_DIR / "clinic_errors.log", logging.ERROR),
        ]
    except OSError as e:
        problems.append(f"File logging disabled ({e}); logging to console only")
        return []


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_started", []).append(time.perf_counter())


def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    started = conn.info.get("query_started")
    if not started:
        return
    elapsed_ms = (time.perf_counter() - started.pop()) * 1000
    if _slow_query_ms is not None and elapsed_ms >= _slow_query_ms:
        logging.getLogger("clinic.sql").warning(
            f"Slow query ({elapsed_ms:.1f}ms)",
            extra={
                "context": {
                    "sql": statement[:500],
                    "duration_ms": round(elapsed_ms, 2),
                }
            },
        )


def _install_query_timing(threshold_ms: Optional[float]) -> None:
    global _slow_query_ms
    _slow_query_ms = threshold_ms
    if threshold_ms is None:
        return
    if not event.contains(Engine, "before_cursor_execute", _before_cursor_execute):
        event.listen(Engine, "before_cursor_execute", _before_cursor_execute)
        event.listen(Engine, "after_cursor_execute", _after_cursor_execute)


def _install_request_hooks(app: Flask) -> None:
    access_logger = logging.getLogger("clinic.access")

    @app.before_request
    def start_request_timer():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def log_access(response):
        started = g.get("request_started")
        if started is None:
            return response
        duration_ms = (time.perf_counter() - started) * 1000
        current = g.get("current_user")
        access_logger.info(
            f"{request.method} {request.path} -> {response.status_code}",
            extra={
                "context": {
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                    "user_id": getattr(current, "id", None),
                    "remote_addr": request.remote_addr,
                }
            },
        )
        response.headers["X-Request-ID"] = g.request_id
        return response


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    slow_query_ms: Optional[float] = None,
    log_to_file: bool = True,
    use_json_format: bool = False,
) -> None:
    """
    Configure root logging and, when ``app`` is given, the access log hooks.

    Args:
        app: Flask application to attach request/response logging to
        log_level: Level name ("INFO") or number (logging.INFO)
        slow_query_ms: Log SQL statements at least this slow; None disables
        log_to_file: Also write rotating files under logs/
        use_json_format: JSON on the console instead of the colored format
    """
    if isinstance(log_level, int):
        level = log_level
    else:
        level = getattr(logging, str(log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        JSONFormatter() if use_json_format else ConsoleFormatter()
    )

    problems: List[str] = []
    handlers = [console_handler]
    if log_to_file:
        handlers.extend(_file_handlers(level, problems))

    request_filter = RequestContextFilter()
    for handler in handlers:
        handler.addFilter(request_filter)
        root_logger.addHandler(handler)

    for message in problems:
        root_logger.warning(message, extra={"context": {"component": "logging"}})

    _install_query_timing(slow_query_ms)
    if app is not None:
        _install_request_hooks(app)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("clinic").debug(
        "Logging configured",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "json": use_json_format,
                "files": log_to_file and not problems,
                "slow_query_ms": slow_query_ms,
            }
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Return the module logger; use ``extra={"context": {...}}`` for details."""
    return logging.getLogger(name)


def log_performance(func_name: str, duration_ms: float, **kwargs) -> None:
    """
    Log how long an operation took, plus any extra context.

    Args:
        func_name: Name of the function or operation
        duration_ms: Execution duration in milliseconds
        **kwargs: Additional context (doctor_id, candidates_checked, etc.)
    """
    context = {"operation": func_name, "duration_ms": round(duration_ms, 2)}
    context.update(kwargs)
    get_logger("clinic.performance").info(
        f"{func_name} took {duration_ms:.2f}ms", extra={"context": context}
    )

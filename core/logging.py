"""Centralised logging configuration for the BloodConnect backend.

Services log with ``extra={...}`` (request ids, donor ids, counters). The
console and file formatters append those fields as ``key=value`` pairs so the
context survives into plain-text logs.
"""
from __future__ import annotations

import logging
import logging.config
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from core.utils.env import get_env

_LOGGING_CONFIGURED = False

# Attributes every LogRecord carries; anything else arrived through ``extra``
_RESERVED_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "shortpathname", "taskName", "color_message"}

_QUIET_LIBRARIES = (
    # HTTP
    "httpcore",
    "httpx",
    "h11",
    "multipart",
    "python_multipart",
    # Database drivers and pool
    "aiomysql",
    "asyncpg",
    "aiosqlite",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
)


class ContextFormatter(logging.Formatter):
    """Standard formatter that appends ``extra`` fields to each line."""

    def format(self, record: logging.LogRecord) -> str:
        record.shortpathname = _trim_path(record.pathname)
        line = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_FIELDS and not key.startswith("_")
        }
        if not context:
            return line
        rendered = " ".join(f"{key}={_render(value)}" for key, value in sorted(context.items()))
        return f"{line} | {rendered}"


class _HealthCheckAccessFilter(logging.Filter):
    """Filter access log entries produced by load balancer health probes."""

    def filter(self, record: logging.LogRecord) -> bool:
        return "GET /health" not in record.getMessage()


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    console_level: str
    file_level: str
    access_level: str
    log_file: Path | None
    retention_days: int
    use_milliseconds: bool


def _trim_path(pathname: str) -> str:
    return pathname[len("/app/"):] if pathname.startswith("/app/") else pathname


def _render(value: Any) -> str:
    text = str(value)
    return f'"{text}"' if " " in text else text


def _resolve_level(value: str | None, default: str) -> str:
    value = (value or "").strip().upper()
    if value and isinstance(getattr(logging, value, None), int):
        return value
    return default


def load_logging_settings() -> LoggingSettings:
    """Read logging knobs from the environment."""

    level = _resolve_level(get_env("BACKEND_LOG_LEVEL"), "INFO")
    node_env = get_env("NODE_ENV") or ""

    log_file: Path | None = None
    # Containers write a rotating file next to stdout; local runs only print
    if node_env and node_env not in {"local", "test"}:
        log_dir = Path(get_env("BACKEND_LOG_DIR", default="/storage/logs") or "/storage/logs")
        log_file = log_dir / (get_env("BACKEND_LOG_FILE", default="bloodconnect.log") or "bloodconnect.log")

    return LoggingSettings(
        level=level,
        console_level=_resolve_level(get_env("BACKEND_LOG_CONSOLE_LEVEL"), level),
        file_level=_resolve_level(get_env("BACKEND_LOG_FILE_LEVEL"), level),
        access_level=_resolve_level(get_env("BACKEND_ACCESS_LOG_LEVEL"), "WARNING"),
        log_file=log_file,
        retention_days=int(get_env("BACKEND_LOG_RETENTION", default="7") or "7"),
        use_milliseconds=(get_env("BACKEND_LOG_TIME_MS", default="false") or "false").lower()
        in {"1", "true", "yes", "on"},
    )


def build_logging_config(settings: LoggingSettings) -> Dict[str, object]:
    """Translate :class:`LoggingSettings` into a ``dictConfig`` mapping."""

    time_fmt = "%(asctime)s.%(msecs)03d" if settings.use_milliseconds else "%(asctime)s"
    handlers: Dict[str, object] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.console_level,
            "formatter": "context",
            "stream": "ext://sys.stdout",
        },
    }
    if settings.log_file is not None:
        handlers["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "level": settings.file_level,
            "formatter": "context",
            "filename": str(settings.log_file),
            "when": "midnight",
            "backupCount": settings.retention_days,
            "encoding": "utf-8",
        }
    handler_names = list(handlers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "context": {
                "()": ContextFormatter,
                "fmt": f"{time_fmt} %(levelname)s [%(shortpathname)s:%(lineno)d] - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "root": {"level": settings.level, "handlers": handler_names},
        "loggers": {
            "uvicorn": {"level": "WARNING", "handlers": handler_names, "propagate": False},
            "uvicorn.error": {"level": "WARNING", "handlers": handler_names, "propagate": False},
            "uvicorn.access": {
                "level": settings.access_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(force: bool = False) -> None:
    """Configure root and uvicorn loggers once per process."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED and not force:
        return

    settings = load_logging_settings()
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(settings))
    logging.captureWarnings(True)

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").addFilter(_HealthCheckAccessFilter())

    _LOGGING_CONFIGURED = True


__all__ = ["ContextFormatter", "LoggingSettings", "build_logging_config", "load_logging_settings", "setup_logging"]

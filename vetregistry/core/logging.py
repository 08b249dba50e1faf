"""Structured logging for the registry — structlog rendered through stdlib handlers.

Every service call binds ``entidad``/``accion`` (and ``entity_id`` when known)
with :func:`bind_operation`, so all lines emitted while it runs, including the
SQLAlchemy and asyncpg ones, carry the same context.
"""

from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

import structlog

LEVEL_ENV = "VETREGISTRY_LOG_LEVEL"
FORMAT_ENV = "VETREGISTRY_LOG_FORMAT"
FILE_ENV = "VETREGISTRY_LOG_FILE"
SQL_ECHO_ENV = "VETREGISTRY_SQL_ECHO"

_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _formatter(renderer: structlog.types.Processor) -> dict[str, Any]:
    return {
        "()": structlog.stdlib.ProcessorFormatter,
        "foreign_pre_chain": _PROCESSORS,
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    }


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    *level* overrides the environment. Environment variables:
        VETREGISTRY_LOG_LEVEL  — registry log level (default: INFO)
        VETREGISTRY_LOG_FORMAT — console | json, for stdout (default: console)
        VETREGISTRY_LOG_FILE   — also append JSON lines to this file
        VETREGISTRY_SQL_ECHO   — 1 to log every SQL statement
    """
    log_level = (level or os.environ.get(LEVEL_ENV, "INFO")).upper()
    json_stdout = os.environ.get(FORMAT_ENV, "console").lower() == "json"
    log_file = os.environ.get(FILE_ENV)
    sql_level = "INFO" if os.environ.get(SQL_ECHO_ENV) == "1" else "WARNING"

    structlog.configure(
        processors=_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: dict[str, dict[str, Any]] = {
        "stdout": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "json" if json_stdout else "console",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "encoding": "utf-8",
            "formatter": "json",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": _formatter(structlog.dev.ConsoleRenderer(colors=False)),
                "json": _formatter(structlog.processors.JSONRenderer(ensure_ascii=False)),
            },
            "handlers": handlers,
            "root": {"handlers": list(handlers), "level": log_level},
            "loggers": {
                "vetregistry": {"level": log_level},
                "sqlalchemy.engine": {"level": sql_level},
                "asyncpg": {"level": "WARNING"},
            },
        }
    )


def bind_operation(entity: str, action: str, entity_id: int | None = None):
    """Bind entity/action (and id when known) to every log line of one service call.

    Returns the context manager from ``structlog.contextvars.bound_contextvars``.
    """
    values: dict[str, object] = {"entidad": entity, "accion": action}
    if entity_id is not None:
        values["entity_id"] = entity_id
    return structlog.contextvars.bound_contextvars(**values)

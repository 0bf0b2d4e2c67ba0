"""Structured logging for TenderCalc.

structlog renders both structlog loggers (web layer) and stdlib loggers
(``logging.getLogger(__name__)`` in the matching and reporting modules), so
request and project context bound with contextvars shows up on every line.
"""

import logging
import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any

import structlog

_HANDLER_MARK = "_tendercalc_handler"

# Chatty third-party loggers kept at WARNING unless LOG_LEVEL is DEBUG
_QUIET_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "uvicorn.access")


def render_money(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Render Decimal values as plain strings ("4550.00" not "Decimal('4550.00')")."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def bind_project_context(project_id: str, **values: Any) -> None:
    """Attach the project (and any extra keys) to every log line in this context."""
    structlog.contextvars.bind_contextvars(project_id=project_id, **values)


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        render_money,
    ]


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structured logging for the application.

    ``level`` and ``json_logs`` default to the LOG_LEVEL and JSON_LOGS
    environment variables. Calling it again replaces the handlers it
    installed earlier and leaves foreign handlers alone.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.getenv("JSON_LOGS", "false").lower() == "true"

    shared_processors = _shared_processors()
    renderer: Any = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_file = Path(os.getenv("TENDERCALC_LOG_FILE", "logs/tendercalc.log"))
    if log_file.parent.exists():
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        root.addHandler(handler)
    root.setLevel(level)

    quiet_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

"""Logging configuration for the Procurement domain.

stdlib logging owns the handlers; structlog formats key/value events and
hands them to stdlib. Output is JSON in production and staging and a plain
console layout elsewhere. Set ``PROCUREMENT_LOG_DIR`` to also write a
rotating ``procurement.log`` file.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

DOMAIN_NAME = "procurement"

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_QUIET_LOGGERS = ("protean", "asyncio", "sqlalchemy.engine")


def _environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def _is_deployed() -> bool:
    return _environment() in ("production", "staging")


def get_log_level() -> str:
    """LOG_LEVEL wins; otherwise the level follows the environment."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(_environment(), "INFO"))


def _handlers() -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_dir = os.getenv("PROCUREMENT_LOG_DIR")
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                path / f"{DOMAIN_NAME}.log",
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
        )
    return handlers


def setup_stdlib_logging(level: str | None = None) -> None:
    log_level = level or get_log_level()

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(log_level)
    for handler in _handlers():
        handler.setLevel(log_level)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _tag_domain(logger, method_name, event_dict):
    event_dict.setdefault("domain", DOMAIN_NAME)
    return event_dict


def setup_structlog() -> None:
    renderer = (
        structlog.processors.JSONRenderer() if _is_deployed() else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _tag_domain,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str | None = None) -> None:
    setup_stdlib_logging(level)
    setup_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind values carried by every later log event in this context (e.g. ``request_id``)."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()

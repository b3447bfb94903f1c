# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Loguru setup shared by the web app and the maintenance scripts.

Every record carries the request correlation id and passes through
:func:`sanitize_record` before reaching a sink.
"""

from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar
from typing import Any

from loguru import logger as _logger

from .sensitive_filter import sanitize_record

_FMT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<lvl>{level:<8}</lvl> | "
    "<magenta>{extra[correlation_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<lvl>{message}</lvl>"
)

_NO_CORRELATION = "-"
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default=_NO_CORRELATION)

# third-party loggers that are too chatty at INFO
_QUIET = {
    "werkzeug": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


class _InterceptHandler(logging.Handler):
    """Route stdlib ``logging`` records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        _logger.bind(correlation_id=_correlation_id.get()).opt(
            depth=6, exception=record.exc_info
        ).log(level, record.getMessage())


class ContextualLogger:
    def __getattr__(self, name: str) -> Any:
        return getattr(_logger.bind(correlation_id=_correlation_id.get()), name)


def set_correlation_id(value: str | None) -> str:
    """Bind ``value`` to the current context and return the previous id."""
    previous = _correlation_id.get()
    _correlation_id.set(value or _NO_CORRELATION)
    return previous


def get_correlation_id() -> str:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(_NO_CORRELATION)


def _sink_options(level: str) -> dict[str, Any]:
    return {
        "level": level,
        "format": _FMT,
        "backtrace": False,
        "diagnose": False,
        "filter": sanitize_record,
    }


def setup_logging(
    level: str | None = None, *, log_file: str | None = None, debug_mode: bool = False
) -> None:
    level = (level or ("DEBUG" if debug_mode else "INFO")).upper()

    _logger.remove()
    _logger.configure(extra={"correlation_id": _NO_CORRELATION})
    _logger.add(sys.stderr, colorize=True, **_sink_options(level))

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        _logger.add(
            log_file, colorize=False, enqueue=True, encoding="utf-8", **_sink_options(level)
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name, quiet_level in _QUIET.items():
        logging.getLogger(name).setLevel(quiet_level)


logger = ContextualLogger()

__all__ = [
    "clear_correlation_id",
    "get_correlation_id",
    "logger",
    "set_correlation_id",
    "setup_logging",
]

"""
utils/logging.py — structlog configuration.

JSON or console output is chosen by settings.log_format. The CLI calls
configure_logging() with its --log-level; each pipeline calls it again
without arguments, which is a no-op once the process is configured.

Usage:
    from covidcan.utils.logging import configure_logging, get_logger

    configure_logging()
    log = get_logger(__name__, pipeline="province_trend")
    log.info("series_ready", province="Ontario", rows=812)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from covidcan.config import settings

# Third-party loggers that flood DEBUG output (font lookups, connection pools)
NOISY_LOGGERS: tuple[str, ...] = ("matplotlib", "PIL", "httpx", "httpcore")

_active: tuple[str, str] | None = None


def _level_number(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level:  Override settings.log_level ("DEBUG", "INFO", …).
        log_format: Override settings.log_format ("json" | "console").
    """
    global _active

    if _active is not None and log_level is None and log_format is None:
        return

    level = (log_level or settings.log_level).upper()
    fmt = log_format or settings.log_format
    if _active == (level, fmt):
        return

    numeric = _level_number(level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        context_class=dict,
        # stdlib factory: add_logger_name needs a logger with a .name
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _active = (level, fmt)


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """Named structlog logger, pre-bound with `initial_values`."""
    logger = structlog.get_logger(name)
    return logger.bind(**initial_values) if initial_values else logger  # type: ignore[return-value]

"""Structured logging for the attachment operations.

Log entries are structlog key/value events. The operations bind
``server_network_id``, ``server_id`` and ``network_id`` as context variables,
so every entry written while an attach, alias change or detach runs carries
them, including the entries from the retry loop and the action polling.

Usage:
    from server_network.config import Settings
    from server_network.logging_config import get_logger, setup_logging

    setup_logging(Settings())  # HCLOUD_LOG_FORMAT / HCLOUD_LOG_LEVEL
    logger = get_logger(__name__)
    logger.info("event_name", key1=value1, key2=value2)
"""

import logging
import sys
from typing import TYPE_CHECKING, Literal

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from .config import Settings


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=False)
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.plain_traceback,
    )


def setup_logging(
    settings: "Settings | None" = None,
    *,
    log_format: Literal["json", "console"] | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog from :class:`~server_network.config.Settings`.

    Args:
        settings: Source of ``service_name``, ``log_format`` and ``log_level``.
                  Defaults to ``Settings()``, i.e. the HCLOUD_* environment.
        log_format: Overrides ``settings.log_format``.
        log_level: Overrides ``settings.log_level``.
    """
    if settings is None:
        from .config import Settings

        settings = Settings()

    log_format = log_format or settings.log_format
    log_level = (log_level or settings.log_level).upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level, logging.INFO),
        force=True,
    )

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        structlog.contextvars.merge_contextvars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=settings.service_name)

    get_logger(__name__).info(
        "logging_initialized",
        service=settings.service_name,
        log_format=log_format,
        log_level=log_level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)

"""Structured logging for analysis runs using structlog.

Console output for interactive use, JSON lines in production. Transaction
and view details travel as bound context rather than in event names.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from household_ledger.config import Settings, get_settings


def _add_log_level(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Upper-case level for JSON output."""
    if method_name == "warn":
        method_name = "warning"
    event_dict["level"] = method_name.upper()
    return event_dict


def _add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["environment"] = settings.environment.value
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def get_console_processors() -> list[Processor]:
    """Processors for human-readable output."""
    return [
        structlog.stdlib.add_log_level,
        *_shared_processors(),
        structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def get_json_processors() -> list[Processor]:
    """Processors for one JSON object per event."""
    return [
        _add_log_level,
        _add_app_context,
        *_shared_processors(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Route structlog through the standard logging module.

    JSON rendering is used when log_format asks for it or when running in
    production; console rendering otherwise.
    """
    if settings is None:
        settings = get_settings()

    if settings.log_format == "json" or settings.is_production:
        processors = get_json_processors()
    else:
        processors = get_console_processors()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.value),
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module.

    Example:
        logger = get_logger(__name__)
        logger.info("analysis_completed", transactions=120, valuation="1150.00")
    """
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind keys onto every subsequent event in this context.

    Example:
        bind_context(view="dated", as_of="2024-04-05")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind keys for the duration of a block.

    Example:
        with LogContext(transaction_id=str(transaction.id)):
            analyser.process_transaction(transaction)
    """

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs

    def __enter__(self) -> "LogContext":
        bind_context(**self.kwargs)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self.kwargs.keys())

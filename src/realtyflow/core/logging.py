"""structlog configuration shared by the API and the automation CLI.

Both structlog loggers and plain ``logging`` loggers (uvicorn, SQLAlchemy)
render through one handler, as JSON in production and as coloured console
output elsewhere. Every line carries the environment and, inside a request
or job, the caller, the resolved tenant and the correlation ID.
"""
# ruff: noqa: ARG001  # Processor signatures required by structlog API

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from realtyflow.config.settings import Settings
from realtyflow.core.context import get_current_context_or_none

# Third-party loggers and the level they are capped at
NOISY_LOGGERS = {
    "uvicorn": None,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": None,
    "sqlalchemy": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "passlib": logging.ERROR,
}


def add_request_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    ctx = get_current_context_or_none()
    if ctx is None:
        return event_dict
    event_dict.setdefault("correlation_id", str(ctx.correlation_id))
    event_dict.setdefault("actor_type", ctx.actor_type.value)
    if ctx.user_id is not None:
        event_dict.setdefault("user_id", str(ctx.user_id))
    if ctx.tenant_id is not None:
        event_dict.setdefault("tenant_id", str(ctx.tenant_id))
    return event_dict


def environment_stamp(environment: str) -> Processor:
    def stamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["environment"] = environment
        # uvicorn duplicates the message with ANSI colours
        event_dict.pop("color_message", None)
        return event_dict

    return stamp


def setup_logging(settings: Settings, *, json_format: bool | None = None) -> None:
    """Configure structlog and route the standard library through it.

    Args:
        settings: Supplies the level and environment
        json_format: Force JSON (True) or console (False) output; by default
            JSON is used in production only
    """
    as_json = settings.is_production if json_format is None else json_format

    pre_chain: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_request_context,
        environment_stamp(settings.ENVIRONMENT),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if as_json:
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer: Processor = (
        structlog.processors.JSONRenderer() if as_json else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)

    for name, cap in NOISY_LOGGERS.items():
        noisy = logging.getLogger(name)
        noisy.handlers = [handler]
        noisy.propagate = False
        if cap is not None:
            noisy.setLevel(cap)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)

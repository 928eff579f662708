import logging

import structlog

from civicconnect.config import settings

# Library loggers that are chatty at INFO; raised to WARNING unless DEBUG
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "asyncpg")


def add_service_context(logger, method_name, event_dict):
    event_dict.setdefault("service", settings.APP_NAME.lower())
    event_dict.setdefault("env", settings.ENVIRONMENT)
    return event_dict


def setup_logging():
    """
    structlog for application events, with stdlib records from uvicorn,
    SQLAlchemy and alembic rendered through the same pipeline so a request's
    request_id shows up on every line it produces.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_context,
    ]

    if settings.ENVIRONMENT == "development":
        renderer = structlog.dev.ConsoleRenderer()
        tail = [renderer]
    else:
        renderer = structlog.processors.JSONRenderer()
        tail = [structlog.processors.format_exc_info, renderer]

    structlog.configure(
        processors=shared_processors + tail,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer, foreign_pre_chain=shared_processors
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if settings.DEBUG else logging.WARNING)

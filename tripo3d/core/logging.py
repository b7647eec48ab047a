import logging
from typing import Optional

import structlog
from opentelemetry import trace

from .config import Settings


def add_trace_context(logger, method_name, event_dict):
    """Injects current OTel Trace ID into the log JSON."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def configure_logging(json_logs: Optional[bool] = None, log_level: Optional[str] = None):
    """
    Configures Structlog for Production (JSON) or Dev (Pretty).
    Applications call this once; importing the SDK never does.
    Unset arguments fall back to JSON_LOGS / LOG_LEVEL from the environment.
    """
    if json_logs is None or log_level is None:
        settings = Settings()
        json_logs = settings.JSON_LOGS if json_logs is None else json_logs
        log_level = settings.LOG_LEVEL if log_level is None else log_level

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO through stdlib logging
    logging.getLogger("httpx").setLevel(logging.WARNING)

"""
Structured logging utility for the Instant Quote extractor.
Provides structured logs with trace IDs so one extraction can be followed
through fetch, parse and resolution.
"""
import uuid
import logging
import structlog
from contextvars import ContextVar
from typing import Any, Dict, List, Optional

from instant_quote.config import config

# Context variable for trace ID
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")


def get_trace_id() -> str:
    """Get current trace ID or generate new one."""
    trace_id = trace_id_var.get()
    if not trace_id:
        trace_id = str(uuid.uuid4())[:8]
        trace_id_var.set(trace_id)
    return trace_id


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Set a new trace ID for the current request context."""
    new_trace_id = trace_id or str(uuid.uuid4())[:8]
    trace_id_var.set(new_trace_id)
    return new_trace_id


def add_trace_id(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Processor to add trace ID to all log entries."""
    event_dict.setdefault("trace_id", get_trace_id())
    return event_dict


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None):
    """
    Configure structlog processors.

    Args:
        level: log level name; defaults to LOG_LEVEL
        fmt: "json" or "console"; defaults to LOG_FORMAT
    """
    level = (level or config.LOG_LEVEL).upper()
    fmt = fmt or config.LOG_FORMAT

    processors = [
        structlog.contextvars.merge_contextvars,
        add_trace_id,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)


class LayerLogger:
    """
    Logger bound to one pipeline component (fetcher, parser, resolver...).

    Every event carries `layer=<name>`, so a single extraction can be read
    back as fetch attempts, fallbacks and the strategy that won each field.
    """

    def __init__(self, layer_name: str):
        self.layer_name = layer_name
        self.logger = get_logger(layer_name).bind(layer=layer_name)

    def log_decision(self, decision: str, reason: str, url: Optional[str] = None, **extra):
        """Log a decision made by this component."""
        self.logger.info("decision_made", decision=decision, reason=reason, url=url, **extra)

    def log_action(self, action: str, status: str = "started", **extra):
        """Log an action; the event name is action_<status>."""
        self.logger.info(f"action_{status}", action=action, **extra)

    def log_fallback(self, from_source: str, to_source: str, reason: str, **extra):
        """Log a fallback from one source or strategy to the next."""
        self.logger.warning(
            "fallback_triggered",
            from_source=from_source,
            to_source=to_source,
            reason=reason,
            **extra
        )

    def log_error(self, error: str, error_type: str = "unknown", **extra):
        """Log an error that was handled (the caller degrades, not raises)."""
        self.logger.error("error_occurred", error=error, error_type=error_type, **extra)

    def log_skip(self, what: str, reason: str, **extra):
        """Log a tolerated failure (bad block, broken strategy) at debug level."""
        self.logger.debug("skipped", what=what, reason=reason, **extra)

    def log_fetch(
        self,
        url: str,
        strategy: str,
        status_code: Optional[int],
        result: str,
        **extra
    ):
        """Log the outcome of one fetch attempt."""
        self.logger.info(
            "fetch_attempt",
            url=url,
            strategy=strategy,
            status_code=status_code,
            result=result,
            **extra
        )

    def log_resolution(
        self,
        fields_present: List[str],
        fields_missing: List[str],
        sources: Dict[str, str],
        **extra
    ):
        """Log which strategy produced each field of a record."""
        self.logger.info(
            "fields_resolved",
            fields_present=fields_present,
            fields_missing=fields_missing,
            sources=sources,
            **extra
        )


# Initialize logging on module import
configure_logging()

"""
Structured logging for the Listing Facts service.

Extraction runs both inside API requests and as a plain library call, so the
trace id is attached only when a request has set one.
"""
import uuid
import logging
import structlog
from contextvars import ContextVar
from typing import Any, Dict, List, Optional

from listing_facts.config import config

# Set per API request; empty for library use
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Start a new trace for the current request context."""
    new_trace_id = trace_id or str(uuid.uuid4())[:8]
    trace_id_var.set(new_trace_id)
    return new_trace_id


def add_trace_id(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Processor adding the request trace id, when there is one."""
    trace_id = trace_id_var.get()
    if trace_id:
        event_dict["trace_id"] = trace_id
    return event_dict


def configure_logging():
    """Configure structlog; level and renderer come from LOG_LEVEL and LOG_FORMAT."""
    processors = [
        structlog.contextvars.merge_contextvars,
        add_trace_id,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
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
    Logger bound to one extractor or layer.

    Every event carries `layer`; per-listing events also carry `asin`.
    """

    def __init__(self, layer_name: str):
        self.layer_name = layer_name
        self.logger = get_logger(layer_name).bind(layer=layer_name)

    def log_decision(self, decision: str, reason: str, asin: Optional[str] = None, **extra):
        """Which strategy won or which label applied. Debug level: emitted per node or field."""
        self.logger.debug("decision_made", decision=decision, reason=reason, asin=asin, **extra)

    def log_action(self, action: str, status: str = "started", **extra):
        self.logger.info(f"action_{status}", action=action, **extra)

    def log_fallback(self, from_source: str, to_source: str, reason: str, **extra):
        """A cascade gave up on one source and moved to the next."""
        self.logger.warning(
            "fallback_triggered",
            from_source=from_source,
            to_source=to_source,
            reason=reason,
            **extra
        )

    def log_error(self, error: str, error_type: str = "unknown", **extra):
        self.logger.error("error_occurred", error=error, error_type=error_type, **extra)

    def log_fetch(
        self,
        url: str,
        asin: str,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        **extra
    ):
        """
        Outcome of one product document retrieval.

        `error` names the failure kind (http_status, transport, invalid_url);
        without it the fetch succeeded.
        """
        if error is None:
            self.logger.info("document_fetched", url=url, asin=asin, status_code=status_code, **extra)
        else:
            self.logger.warning(
                "document_fetch_failed",
                url=url,
                asin=asin,
                status_code=status_code,
                error=error,
                **extra
            )

    def log_extraction(self, asin: str, fields_present: List[str], fields_missing: List[str], **extra):
        """Which listing facts were found for one record."""
        self.logger.info(
            "listing_extracted",
            asin=asin,
            fields_present=fields_present,
            fields_missing=fields_missing,
            **extra
        )


# Initialize logging on module import
configure_logging()

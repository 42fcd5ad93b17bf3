"""Structured logging with per-request context using structlog and contextvars."""

import logging
import sys

import structlog

_configured = False


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON output on stderr and per-request context.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    global _configured
    if _configured:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject request context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # stdout may carry MCP JSON-RPC, so logs always go to stderr
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )

    _configured = True


def bind_search_context(request_id: str, query: str | None = None) -> None:
    """Bind request context for all subsequent logs in this async context.

    Args:
        request_id: Unique identifier of the pipeline invocation
        query: The user query, truncated for the log
    """
    context = {"request_id": request_id}
    if query is not None:
        context["query"] = query[:100]
    structlog.contextvars.bind_contextvars(**context)


def clear_search_context() -> None:
    """Clear request context after the invocation completes."""
    structlog.contextvars.clear_contextvars()


def get_search_logger(name: str = "mcp_server_llm_search") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the bound request context."""
    return structlog.get_logger(name)

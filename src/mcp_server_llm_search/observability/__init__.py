"""Observability: structured logging with per-request context."""

from .logging import (
    bind_search_context,
    clear_search_context,
    get_search_logger,
    setup_structured_logging,
)

__all__ = [
    "bind_search_context",
    "clear_search_context",
    "get_search_logger",
    "setup_structured_logging",
]

"""LLM-assisted web search pipeline with an MCP server."""

from .config import get_settings
from .exceptions import (
    CancellationFailure,
    LLMFailure,
    LLMProviderError,
    LLMSearchError,
    ParsingFailure,
    SearchFailure,
    UnexpectedFailure,
    ValidationFailure,
)
from .factory import build_pipeline
from .search import Failed, PipelineResult, ResponseParser, SearchPipeline, Synthesized, parse_thinking

__all__ = [
    "build_pipeline",
    "get_settings",
    "parse_thinking",
    "ResponseParser",
    "SearchPipeline",
    "PipelineResult",
    "Synthesized",
    "Failed",
    "LLMSearchError",
    "LLMProviderError",
    "ValidationFailure",
    "LLMFailure",
    "ParsingFailure",
    "SearchFailure",
    "CancellationFailure",
    "UnexpectedFailure",
]

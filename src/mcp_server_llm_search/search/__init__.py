"""LLM-assisted web search: query expansion, concurrent search and cited synthesis."""

from .models import (
    AggregateResultSet,
    Failed,
    GenerationConfig,
    LlmTextResponse,
    PipelineResult,
    PipelineStage,
    Query,
    SearchOutcome,
    SearchResult,
    Synthesized,
    ThinkingResponse,
)
from .orchestrator import SearchOrchestrator
from .pipeline import SearchPipeline
from .query_generator import QueryGenerator
from .synthesizer import ResultSynthesizer, extract_domain
from .thinking import ResponseParser, parse_thinking

__all__ = [
    "AggregateResultSet",
    "Failed",
    "GenerationConfig",
    "LlmTextResponse",
    "PipelineResult",
    "PipelineStage",
    "Query",
    "QueryGenerator",
    "ResponseParser",
    "ResultSynthesizer",
    "SearchOrchestrator",
    "SearchOutcome",
    "SearchPipeline",
    "SearchResult",
    "Synthesized",
    "ThinkingResponse",
    "extract_domain",
    "parse_thinking",
]

"""Data models for the search pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import LLMSearchError


class Query(BaseModel):
    """A single search query sent to a backend."""

    model_config = ConfigDict(frozen=True)

    text: str
    max_results: int = Field(default=5, gt=0)
    language: str = "en"

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query text must not be empty")
        return value


class SearchResult(BaseModel):
    """One ranked hit returned by a search backend. ``url`` identifies it."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    snippet: str
    content: str | None = None
    source: str | None = None


class SearchOutcome(BaseModel):
    """Result of one backend call.

    ``is_successful`` is independent of the result count: a backend may report
    success with zero results.
    """

    model_config = ConfigDict(frozen=True)

    results: list[SearchResult] = Field(default_factory=list)
    is_successful: bool = True
    error: str | None = None
    backend: str | None = None
    execution_time_ms: int | None = None

    @classmethod
    def success(cls, results: list[SearchResult], backend: str | None = None, execution_time_ms: int | None = None) -> "SearchOutcome":
        return cls(results=results, is_successful=True, backend=backend, execution_time_ms=execution_time_ms)

    @classmethod
    def failure(cls, error: str, backend: str | None = None, execution_time_ms: int | None = None) -> "SearchOutcome":
        return cls(results=[], is_successful=False, error=error, backend=backend, execution_time_ms=execution_time_ms)


class AggregateResultSet(BaseModel):
    """Results of a whole fan-out, in query-submission order then backend rank order."""

    model_config = ConfigDict(frozen=True)

    results: list[SearchResult] = Field(default_factory=list)
    queries_attempted: int = 0
    queries_failed: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.results

    def top(self, limit: int) -> list[SearchResult]:
        """Return the first ``limit`` results, preserving order."""
        return list(self.results[:limit])


class GenerationConfig(BaseModel):
    """Sampling parameters for a text generation call."""

    model_config = ConfigDict(frozen=True)

    max_tokens: int = Field(default=1000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    stop_sequences: list[str] | None = None
    system_prompt: str | None = None


class LlmTextResponse(BaseModel):
    """A complete text generation. Never partial: adapters raise instead."""

    model_config = ConfigDict(frozen=True)

    text: str
    model: str
    tokens_generated: int | None = None
    generation_time_ms: int | None = None
    metadata: dict[str, Any] | None = None


class ThinkingResponse(BaseModel):
    """An LLM response split into its thinking segment and its main content."""

    model_config = ConfigDict(frozen=True)

    main_content: str
    thinking_content: str | None = None
    has_thinking: bool = False
    original_response: LlmTextResponse

    def __str__(self) -> str:
        thinking_len = len(self.thinking_content) if self.thinking_content else 0
        return f"ThinkingResponse(main_content: {len(self.main_content)} chars, has_thinking: {self.has_thinking}, thinking_content: {thinking_len} chars)"


class PipelineStage(str, Enum):
    """States of a pipeline invocation."""

    START = "start"
    GENERATING_QUERIES = "generating_queries"
    SEARCHING = "searching"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Synthesized:
    """Successful pipeline outcome."""

    text: str


@dataclass(frozen=True)
class Failed:
    """Failed pipeline outcome. ``stage`` is where the failure happened."""

    reason: LLMSearchError
    stage: PipelineStage | None = None

    @property
    def message(self) -> str:
        return self.reason.message


PipelineResult = Synthesized | Failed

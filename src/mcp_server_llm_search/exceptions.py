"""Failure taxonomy for the LLM-assisted web search pipeline.

Every failure that can leave the pipeline is one of the classes below. They are
raised by the adapters and pipeline stages and converted into a ``Failed`` value
by :class:`~mcp_server_llm_search.search.pipeline.SearchPipeline`.
"""

from typing import Any


class LLMSearchError(Exception):
    """Base exception for llm-search errors."""

    code = "LLM_SEARCH_ERROR"

    def __init__(self, message: str, *, code: str | None = None, metadata: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.metadata = metadata or {}


class LLMProviderError(LLMSearchError):
    """Raised when LLM provider configuration is invalid."""

    code = "LLM_PROVIDER_ERROR"


class ValidationFailure(LLMSearchError):
    """Invalid input, rejected before any network call."""

    code = "VALIDATION_FAILURE"

    def __init__(self, message: str, *, field: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field


class LLMFailure(LLMSearchError):
    """A language model call failed."""

    code = "LLM_FAILURE"

    def __init__(self, message: str, *, model: str | None = None, prompt_preview: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.model = model
        # Prompts can be large and carry user data, keep only the head
        self.prompt_preview = prompt_preview[:100] if prompt_preview else None


class ParsingFailure(LLMSearchError):
    """Structured LLM output could not be parsed."""

    code = "PARSING_FAILURE"

    def __init__(self, message: str, *, failed_data: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.failed_data = failed_data


class SearchFailure(LLMSearchError):
    """No usable search results, or a backend call failed."""

    code = "SEARCH_FAILURE"

    def __init__(self, message: str, *, query: str | None = None, provider: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.query = query
        self.provider = provider


class CancellationFailure(LLMSearchError):
    """The pipeline was cancelled or timed out."""

    code = "CANCELLATION_FAILURE"

    def __init__(self, message: str, *, timeout: float | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class UnexpectedFailure(LLMSearchError):
    """Catch-all wrapping an error that fits no other category."""

    code = "UNEXPECTED_FAILURE"

    def __init__(self, message: str, *, original_exception: BaseException | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.original_exception = original_exception

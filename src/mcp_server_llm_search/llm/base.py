"""Language model capability consumed by the search pipeline."""

from typing import Protocol, runtime_checkable

from ..search.models import GenerationConfig, LlmTextResponse


@runtime_checkable
class LanguageModelClient(Protocol):
    """Generates text for a prompt.

    Implementations return a complete :class:`LlmTextResponse` or raise
    :class:`~mcp_server_llm_search.exceptions.LLMFailure`. Instances may be
    shared by concurrent pipeline invocations and must be safe for that.
    """

    async def generate_text(
        self,
        prompt: str,
        model: str | None = None,
        config: GenerationConfig | None = None,
    ) -> LlmTextResponse: ...

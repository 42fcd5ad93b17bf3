"""Synthesis of aggregated search results into a single cited answer."""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from .models import SearchResult
from .prompts import get_synthesis_prompt

if TYPE_CHECKING:
    from ..llm.base import LanguageModelClient
    from .models import GenerationConfig

logger = logging.getLogger(__name__)

DEFAULT_RESULT_LIMIT = 5


def extract_domain(url: str) -> str:
    """Return the host of ``url`` for citation, or ``url`` itself if it has none."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return url
    return host or url


class ResultSynthesizer:
    """Turns the original query plus search results into one answer via the LLM.

    Only the first ``result_limit`` results are used, and only their title,
    snippet and URL, so prompt size stays bounded regardless of how much was
    aggregated or fetched.
    """

    def __init__(
        self,
        llm: "LanguageModelClient",
        model: str | None = None,
        config: "GenerationConfig | None" = None,
        result_limit: int = DEFAULT_RESULT_LIMIT,
    ):
        if result_limit < 1:
            raise ValueError(f"result_limit must be at least 1, got {result_limit}")
        self.llm = llm
        self.model = model
        self.config = config
        self.result_limit = result_limit

    def build_prompt(self, original_query: str, results: Sequence[SearchResult]) -> str:
        """Build the synthesis prompt from the first ``result_limit`` results."""
        limited = list(results[: self.result_limit])
        return get_synthesis_prompt(original_query, limited, extract_domain)

    async def synthesize(self, original_query: str, results: Sequence[SearchResult]) -> str:
        """Synthesize an answer. The generated text is returned verbatim.

        Raises:
            LLMFailure: The model call failed (propagated unchanged).
        """
        if len(results) > self.result_limit:
            logger.debug(f"Truncating {len(results)} results to {self.result_limit} for synthesis")

        prompt = self.build_prompt(original_query, results)
        response = await self.llm.generate_text(prompt, model=self.model, config=self.config)
        return response.text

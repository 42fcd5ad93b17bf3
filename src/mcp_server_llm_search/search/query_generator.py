"""LLM-based query expansion: one user query into several focused search queries."""

import json
import logging
from typing import TYPE_CHECKING

from ..exceptions import ParsingFailure
from .prompts import get_query_generation_prompt

if TYPE_CHECKING:
    from ..llm.base import LanguageModelClient
    from .models import GenerationConfig

logger = logging.getLogger(__name__)


def strip_code_fence(content: str) -> str:
    """Remove one markdown code fence wrapping ``content``, if present."""
    if "```json" in content:
        return content.split("```json")[1].split("```")[0].strip()
    if content.startswith("```"):
        return content.split("```")[1].split("```")[0].strip()
    return content


class QueryGenerator:
    """Turns a user query into candidate search queries via the language model.

    The model's reply must be a JSON array of strings once trimmed. Anything else
    is a :class:`ParsingFailure` carrying the raw reply; free text is never mined
    for queries.
    """

    def __init__(
        self,
        llm: "LanguageModelClient",
        model: str | None = None,
        config: "GenerationConfig | None" = None,
        max_queries: int | None = None,
        allow_code_fences: bool = False,
    ):
        self.llm = llm
        self.model = model
        self.config = config
        self.max_queries = max_queries
        self.allow_code_fences = allow_code_fences

    async def generate(self, user_query: str) -> list[str]:
        """Generate search queries for ``user_query``.

        Raises:
            LLMFailure: The model call failed (propagated unchanged).
            ParsingFailure: The reply is not a JSON array of strings.
        """
        prompt = get_query_generation_prompt(user_query)
        response = await self.llm.generate_text(prompt, model=self.model, config=self.config)

        queries = self.parse_queries(response.text)
        if self.max_queries is not None and len(queries) > self.max_queries:
            logger.debug(f"Model returned {len(queries)} queries, keeping {self.max_queries}")
            queries = queries[: self.max_queries]

        logger.info(f"Generated {len(queries)} search queries")
        return queries

    def parse_queries(self, raw: str) -> list[str]:
        """Parse the model reply into a list of non-blank query strings."""
        content = raw.strip()
        if self.allow_code_fences:
            content = strip_code_fence(content)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from LLM response: {raw[:200]}")
            raise ParsingFailure(f"Failed to parse search queries: {e}", failed_data=raw) from e

        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise ParsingFailure("Response is not a valid JSON array of strings", failed_data=raw)

        return [item.strip() for item in data if item.strip()]

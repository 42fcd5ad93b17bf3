"""Pytest configuration and fixtures for mcp-server-llm-search tests."""

import asyncio
import json
from collections.abc import Callable

import pytest

from mcp_server_llm_search.search.models import GenerationConfig, LlmTextResponse, Query, SearchOutcome, SearchResult


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: Tests that take longer to run")


class FakeLLM:
    """Scripted LanguageModelClient: replies are returned in order, exceptions are raised."""

    def __init__(self, *replies: str | BaseException):
        self.replies = list(replies)
        self.prompts: list[str] = []
        self.calls: list[dict] = []

    async def generate_text(self, prompt: str, model: str | None = None, config: GenerationConfig | None = None) -> LlmTextResponse:
        self.prompts.append(prompt)
        self.calls.append({"model": model, "config": config})
        if not self.replies:
            raise AssertionError(f"Unexpected LLM call with prompt: {prompt[:80]}")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return LlmTextResponse(text=reply, model=model or "fake-model")


class FakeBackend:
    """SearchBackend whose behaviour per query text is scripted.

    ``script`` maps a query text to a list of results, an unsuccessful
    SearchOutcome, or an exception. ``delays`` maps query text to seconds slept
    before answering.
    """

    name = "fake"

    def __init__(self, script: dict | None = None, delays: dict[str, float] | None = None):
        self.script = script or {}
        self.delays = delays or {}
        self.queries: list[Query] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def search(self, query: Query) -> SearchOutcome:
        self.queries.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(query.text, 0))
            entry = self.script.get(query.text, [])
            if isinstance(entry, BaseException):
                raise entry
            if isinstance(entry, SearchOutcome):
                return entry
            return SearchOutcome.success(list(entry), backend=self.name)
        finally:
            self.in_flight -= 1

    async def fetch_page_content(self, url: str) -> str:
        return f"content of {url}"


def make_results(prefix: str, count: int, domain: str = "example.com") -> list[SearchResult]:
    return [
        SearchResult(title=f"{prefix} title {i}", url=f"https://{domain}/{prefix}/{i}", snippet=f"{prefix} snippet {i}")
        for i in range(1, count + 1)
    ]


@pytest.fixture
def queries_json() -> Callable[..., str]:
    def _dump(*queries: str) -> str:
        return json.dumps(list(queries))

    return _dump

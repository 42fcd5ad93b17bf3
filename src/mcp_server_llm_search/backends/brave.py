"""Brave Web Search API backend."""

import asyncio
import logging
import os
import time

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .._http import http_client
from ..exceptions import SearchFailure
from ..search.models import Query, SearchOutcome, SearchResult
from .http import HttpSearchBackend, elapsed_ms

logger = logging.getLogger(__name__)

BRAVE_API_URL = "https://api.search.brave.com/res/v1/web/search"

MAX_ATTEMPTS = 3
RATE_LIMIT_BACKOFF_SECONDS = 0.5


class BraveSearchResultProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    url: str | None = None


class BraveSearchResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    url: str
    description: str = ""
    profile: BraveSearchResultProfile | None = None

    def to_search_result(self) -> SearchResult:
        return SearchResult(
            title=self.title,
            url=self.url,
            snippet=self.description,
            source=self.profile.name if self.profile and self.profile.name else "brave",
        )


class BraveSearchResults(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[BraveSearchResult] = []


class BraveSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    web: BraveSearchResults | None = None

    def to_search_results(self) -> list[SearchResult]:
        if self.web is None:
            return []
        return [result.to_search_result() for result in self.web.results]


class BraveBackend(HttpSearchBackend):
    """Searches the Brave Web Search API, retrying briefly when rate limited."""

    name = "brave"

    def __init__(self, api_key: str | None = None, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        if not (brave_api_key := api_key or os.getenv("BRAVE_API_KEY")):
            raise SearchFailure("BRAVE_API_KEY is not set", provider=self.name)

        super().__init__(timeout=timeout, client=client)
        self.api_key = brave_api_key

    async def brave_search(self, query: Query) -> BraveSearchResponse:
        """Call the API, retrying on HTTP 429.

        Raises:
            SearchFailure: Every attempt was rate limited.
            httpx.HTTPError: Any other transport or status error.
        """
        params = {"q": query.text, "count": query.max_results, "search_lang": query.language}
        headers = {"X-Subscription-Token": self.api_key, "Accept": "application/json"}

        async with http_client(self._client, self.timeout) as client:
            for _ in range(MAX_ATTEMPTS):
                response = await client.get(BRAVE_API_URL, params=params, headers=headers)
                if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
                    await asyncio.sleep(RATE_LIMIT_BACKOFF_SECONDS)
                    continue
                response.raise_for_status()
                return BraveSearchResponse.model_validate(response.json())

        raise SearchFailure("Brave search stayed rate limited", query=query.text, provider=self.name)

    async def search(self, query: Query) -> SearchOutcome:
        started = time.perf_counter()
        try:
            response = await self.brave_search(query)
        except SearchFailure as e:
            return SearchOutcome.failure(e.message, backend=self.name, execution_time_ms=elapsed_ms(started))
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"Brave search failed for '{query.text}': {e}")
            return SearchOutcome.failure(f"Brave search failed: {e}", backend=self.name, execution_time_ms=elapsed_ms(started))

        results = response.to_search_results()[: query.max_results]
        return SearchOutcome.success(results, backend=self.name, execution_time_ms=elapsed_ms(started))

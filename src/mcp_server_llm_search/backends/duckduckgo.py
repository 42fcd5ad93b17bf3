"""DuckDuckGo backend: Instant Answer API, topped up from the HTML results page."""

import logging
import time
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
from bs4 import BeautifulSoup

from .._http import http_client
from ..search.models import Query, SearchOutcome, SearchResult
from .http import HttpSearchBackend, elapsed_ms

logger = logging.getLogger(__name__)

DUCKDUCKGO_API_URL = "https://api.duckduckgo.com/"
DUCKDUCKGO_HTML_URL = "https://duckduckgo.com/html/"

# Fewer API results than this triggers the HTML page
MIN_API_RESULTS = 3

TITLE_WORDS = 8

HTML_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


def title_from_text(text: str) -> str:
    """Use the first words of a topic text as its title."""
    words = text.split(" ")
    if len(words) <= TITLE_WORDS:
        return text
    return f"{' '.join(words[:TITLE_WORDS])}..."


def _clean(text: str) -> str:
    return " ".join(text.split())


def _flatten_topics(topics: list[Any]) -> list[dict[str, Any]]:
    # Disambiguation groups nest their entries under "Topics"
    flat: list[dict[str, Any]] = []
    for topic in topics:
        if not isinstance(topic, dict):
            continue
        if isinstance(topic.get("Topics"), list):
            flat.extend(_flatten_topics(topic["Topics"]))
        else:
            flat.append(topic)
    return flat


def _topic_result(topic: dict[str, Any]) -> SearchResult | None:
    text = topic.get("Text")
    url = topic.get("FirstURL")
    if not text or not url:
        return None

    # Topic texts read "Title - description"
    title, sep, rest = text.partition(" - ")
    return SearchResult(
        title=_clean(title) if sep else title_from_text(_clean(text)),
        url=url,
        snippet=_clean(rest) if sep else _clean(text),
        source="duckduckgo",
    )


def parse_instant_answer(data: dict[str, Any], query: Query) -> list[SearchResult]:
    """Turn an Instant Answer payload into ranked results.

    The abstract, when it has a URL, ranks first. Topics without a URL are
    skipped so every result can be cited.
    """
    results: list[SearchResult] = []

    for topic in _flatten_topics(data.get("RelatedTopics") or []):
        if len(results) >= query.max_results:
            break
        if (result := _topic_result(topic)) is not None:
            results.append(result)

    if data.get("Abstract") and data.get("AbstractURL"):
        results.insert(
            0,
            SearchResult(
                title=data.get("Heading") or query.text,
                url=data["AbstractURL"],
                snippet=_clean(data["Abstract"]),
                source="duckduckgo",
            ),
        )

    # Nothing else: fall back to the definition entry
    if not results and data.get("Definition") and data.get("DefinitionURL"):
        results.append(
            SearchResult(
                title=data.get("Heading") or query.text,
                url=data["DefinitionURL"],
                snippet=_clean(data["Definition"]),
                source="duckduckgo",
            )
        )

    return results


def _result_url(href: str) -> str | None:
    # Result links may go through the /l/?uddg=<target> redirector
    parsed = urlparse(href)
    if parsed.path.startswith("/l/") and (target := parse_qs(parsed.query).get("uddg")):
        href = target[0]
    return href if href.startswith("http") else None


def parse_html_results(html: str, max_results: int) -> list[SearchResult]:
    """Extract ranked results from the DuckDuckGo HTML results page."""
    soup = BeautifulSoup(html, "html.parser")
    results: list[SearchResult] = []

    for element in soup.select(".result, .web-result"):
        if len(results) >= max_results:
            break

        link = element.select_one(".result__title a, .result__a")
        if link is None or not (url := _result_url(link.get("href") or "")):
            continue
        title = _clean(link.get_text())
        if not title:
            continue

        snippet = element.select_one(".result__snippet, .result__body")
        results.append(
            SearchResult(
                title=title,
                url=url,
                snippet=_clean(snippet.get_text()) if snippet else "",
                source="duckduckgo",
            )
        )

    return results


def _unique(results: list[SearchResult]) -> list[SearchResult]:
    seen: set[tuple[str, str]] = set()
    unique: list[SearchResult] = []
    for result in results:
        key = (result.url, result.title)
        if key not in seen:
            seen.add(key)
            unique.append(result)
    return unique


class DuckDuckGoBackend(HttpSearchBackend):
    """Searches DuckDuckGo without an API key.

    The Instant Answer API answers first. It rarely has topics for multi-word
    queries, so when it yields fewer than ``MIN_API_RESULTS`` the HTML results
    page is scraped as well. The outcome is unsuccessful only when nothing was
    found and a request failed.
    """

    name = "duckduckgo"

    async def search(self, query: Query) -> SearchOutcome:
        started = time.perf_counter()
        results: list[SearchResult] = []
        errors: list[str] = []

        async with http_client(self._client, self.timeout) as client:
            try:
                results = await self._search_api(client, query)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"DuckDuckGo API search failed for '{query.text}': {e}")
                errors.append(f"API: {e}")

            if len(results) < MIN_API_RESULTS:
                try:
                    results = results + await self._search_html(client, query)
                except httpx.HTTPError as e:
                    logger.warning(f"DuckDuckGo HTML search failed for '{query.text}': {e}")
                    errors.append(f"HTML: {e}")

        results = _unique(results)[: query.max_results]
        if not results and errors:
            return SearchOutcome.failure(
                f"DuckDuckGo search failed: {'; '.join(errors)}", backend=self.name, execution_time_ms=elapsed_ms(started)
            )

        logger.debug(f"DuckDuckGo returned {len(results)} results for '{query.text}'")
        return SearchOutcome.success(results, backend=self.name, execution_time_ms=elapsed_ms(started))

    async def _search_api(self, client: httpx.AsyncClient, query: Query) -> list[SearchResult]:
        params = {"q": query.text, "format": "json", "no_html": "1", "skip_disambig": "1"}
        response = await client.get(DUCKDUCKGO_API_URL, params=params, headers={"Accept": "application/json"})
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("unexpected Instant Answer payload")
        return parse_instant_answer(data, query)

    async def _search_html(self, client: httpx.AsyncClient, query: Query) -> list[SearchResult]:
        response = await client.get(DUCKDUCKGO_HTML_URL, params={"q": query.text}, headers=HTML_HEADERS)
        response.raise_for_status()
        return parse_html_results(response.text, query.max_results)

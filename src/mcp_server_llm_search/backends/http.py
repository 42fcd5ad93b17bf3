"""Shared behaviour of the httpx-based search backends: page fetching and text extraction."""

import logging
import time
from abc import ABC, abstractmethod

import httpx
from bs4 import BeautifulSoup

from .._http import http_client
from ..exceptions import SearchFailure
from ..search.models import Query, SearchOutcome

logger = logging.getLogger(__name__)

MAX_PAGE_CONTENT_LENGTH = 2000

# Page chrome that never carries the article text
_NON_CONTENT_TAGS = ["script", "style", "nav", "header", "footer"]


def elapsed_ms(started: float) -> int:
    """Milliseconds since a `time.perf_counter()` reading."""
    return int((time.perf_counter() - started) * 1000)


def extract_page_text(html: str, max_length: int = MAX_PAGE_CONTENT_LENGTH) -> str:
    """Return the visible body text of ``html``, capped at ``max_length`` characters."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(_NON_CONTENT_TAGS):
        element.decompose()

    root = soup.body or soup
    text = " ".join(root.get_text(separator=" ").split())
    if len(text) > max_length:
        return f"{text[:max_length]}..."
    return text


class HttpSearchBackend(ABC):
    """Base class for backends that search and fetch pages over HTTP."""

    name: str = "http"

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self._client = client

    @abstractmethod
    async def search(self, query: Query) -> SearchOutcome: ...

    async def fetch_page_content(self, url: str) -> str:
        """Download ``url`` and return its main text.

        Raises:
            SearchFailure: The page could not be fetched.
        """
        try:
            async with http_client(self._client, self.timeout) as client:
                response = await client.get(url)
                response.raise_for_status()
                html = response.text
        except httpx.HTTPError as e:
            raise SearchFailure(f"Failed to load page {url}: {e}", provider=self.name) from e

        return extract_page_text(html)

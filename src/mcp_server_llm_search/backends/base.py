"""Search backend capability consumed by the search orchestrator."""

from typing import Protocol, runtime_checkable

from ..search.models import Query, SearchOutcome


@runtime_checkable
class SearchBackend(Protocol):
    """Executes one search query or fetches one page's content."""

    name: str

    async def search(self, query: Query) -> SearchOutcome: ...

    async def fetch_page_content(self, url: str) -> str: ...

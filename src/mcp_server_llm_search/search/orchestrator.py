"""Concurrent fan-out of generated queries to a search backend."""

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..observability.logging import get_search_logger
from .models import AggregateResultSet, Query, SearchResult

if TYPE_CHECKING:
    from ..backends.base import SearchBackend

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4


class SearchOrchestrator:
    """Runs one backend search per query concurrently and aggregates the results.

    A query whose backend call raises or reports an unsuccessful outcome is
    dropped from the aggregate and logged; the others still contribute. The
    aggregate keeps query-submission order and, within a query, the backend's
    ranking, whatever order the calls complete in. No deduplication happens here.
    """

    def __init__(self, backend: "SearchBackend", max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.backend = backend
        self.max_concurrency = max_concurrency

    async def search(self, queries: Sequence[Query]) -> AggregateResultSet:
        """Search every query and return the aggregate. Never fails as a whole."""
        if not queries:
            return AggregateResultSet()

        # Per-invocation so concurrent pipeline runs don't share a limit
        semaphore = asyncio.Semaphore(self.max_concurrency)

        # One slot per query, filled in submission order by gather
        slots = await asyncio.gather(*(self._search_one(i, query, semaphore) for i, query in enumerate(queries)))

        results: list[SearchResult] = []
        failed = 0
        for slot in slots:
            if slot is None:
                failed += 1
                continue
            results.extend(slot)

        logger.info(f"Search fan-out finished: {len(queries) - failed}/{len(queries)} queries succeeded, {len(results)} results")
        return AggregateResultSet(results=results, queries_attempted=len(queries), queries_failed=failed)

    async def _search_one(self, index: int, query: Query, semaphore: asyncio.Semaphore) -> list[SearchResult] | None:
        """Execute one query. Returns None when its contribution must be dropped."""
        async with semaphore:
            logger.debug(f"Executing search {index + 1}: {query.text}")
            try:
                outcome = await self.backend.search(query)
            except Exception as e:
                get_search_logger().warning("query_failed", query=query.text, error=str(e) or type(e).__name__)
                return None

        if not outcome.is_successful:
            get_search_logger().warning("query_failed", query=query.text, backend=outcome.backend, error=outcome.error or "unknown error")
            return None

        return list(outcome.results)

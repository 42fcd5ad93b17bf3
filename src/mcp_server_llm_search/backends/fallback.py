"""Backend chaining: try several search backends in priority order."""

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..exceptions import SearchFailure
from ..search.models import Query, SearchOutcome
from .http import elapsed_ms

if TYPE_CHECKING:
    from .base import SearchBackend

logger = logging.getLogger(__name__)


class FallbackSearchBackend:
    """Returns the first successful outcome among its backends.

    Each backend gets ``timeout`` seconds. A backend that raises, times out or
    reports failure hands over to the next one; when all of them fail the
    outcome is unsuccessful and lists every backend's error.
    """

    def __init__(self, backends: Sequence["SearchBackend"], timeout: float | None = None):
        if not backends:
            raise ValueError("FallbackSearchBackend needs at least one backend")
        self.backends = list(backends)
        self.timeout = timeout
        self.name = "+".join(b.name for b in self.backends)

    async def search(self, query: Query) -> SearchOutcome:
        started = time.perf_counter()
        errors: list[str] = []

        for backend in self.backends:
            try:
                outcome = await asyncio.wait_for(backend.search(query), timeout=self.timeout)
            except TimeoutError:
                logger.warning(f"Backend {backend.name} timed out after {self.timeout}s for '{query.text}'")
                errors.append(f"{backend.name}: timed out")
                continue
            except Exception as e:
                logger.warning(f"Backend {backend.name} failed for '{query.text}': {e}")
                errors.append(f"{backend.name}: {e}")
                continue

            if outcome.is_successful:
                return outcome

            errors.append(f"{backend.name}: {outcome.error or 'unsuccessful'}")

        return SearchOutcome.failure("; ".join(errors), backend=self.name, execution_time_ms=elapsed_ms(started))

    async def fetch_page_content(self, url: str) -> str:
        """Fetch ``url`` through the first backend able to load it.

        Raises:
            SearchFailure: No backend could load the page.
        """
        last_error: SearchFailure | None = None
        for backend in self.backends:
            try:
                return await backend.fetch_page_content(url)
            except SearchFailure as e:
                last_error = e

        raise last_error or SearchFailure(f"Failed to load page {url}", provider=self.name)

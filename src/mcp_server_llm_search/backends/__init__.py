"""Search backends and the factory selecting them from settings."""

from typing import TYPE_CHECKING

from .base import SearchBackend
from .brave import BraveBackend
from .duckduckgo import DuckDuckGoBackend
from .fallback import FallbackSearchBackend
from .http import HttpSearchBackend, extract_page_text

if TYPE_CHECKING:
    from ..config import SearchSettings


def build_search_backend(settings: "SearchSettings") -> SearchBackend:
    """Create the configured backend, chained for fallback when several are listed.

    Raises:
        SearchFailure: A configured backend is missing its credentials.
    """
    backends: list[SearchBackend] = []
    for name in dict.fromkeys(settings.backends):
        match name:
            case "duckduckgo":
                backends.append(DuckDuckGoBackend(timeout=settings.backend_timeout))
            case "brave":
                backends.append(BraveBackend(api_key=settings.get_brave_api_key(), timeout=settings.backend_timeout))
            case _:
                raise ValueError(f"Unsupported search backend: {name}")

    if len(backends) == 1:
        return backends[0]
    return FallbackSearchBackend(backends, timeout=settings.backend_timeout)


__all__ = [
    "BraveBackend",
    "DuckDuckGoBackend",
    "FallbackSearchBackend",
    "HttpSearchBackend",
    "SearchBackend",
    "build_search_backend",
    "extract_page_text",
]

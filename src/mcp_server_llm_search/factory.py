"""Wiring of settings, adapters and pipeline stages."""

from typing import TYPE_CHECKING

from .backends import build_search_backend
from .config import AppSettings, get_settings
from .llm import build_generation_config, build_llm_client
from .search import QueryGenerator, ResultSynthesizer, SearchOrchestrator, SearchPipeline

if TYPE_CHECKING:
    from .backends.base import SearchBackend
    from .llm.base import LanguageModelClient


def build_pipeline(
    settings: AppSettings | None = None,
    llm: "LanguageModelClient | None" = None,
    backend: "SearchBackend | None" = None,
) -> SearchPipeline:
    """Build a SearchPipeline from settings, with optional collaborator overrides.

    Raises:
        LLMProviderError: The configured LLM provider cannot be created.
        SearchFailure: A configured search backend is missing credentials.
    """
    settings = settings or get_settings()
    llm = llm or build_llm_client(settings.llm)
    backend = backend or build_search_backend(settings.search)
    generation_config = build_generation_config(settings.llm)

    return SearchPipeline(
        query_generator=QueryGenerator(
            llm,
            model=settings.llm.model_name,
            config=generation_config,
            max_queries=settings.pipeline.max_queries,
            allow_code_fences=settings.pipeline.allow_code_fences,
        ),
        orchestrator=SearchOrchestrator(backend, max_concurrency=settings.search.max_concurrency),
        synthesizer=ResultSynthesizer(
            llm,
            model=settings.llm.model_name,
            config=generation_config,
            result_limit=settings.pipeline.synthesis_result_limit,
        ),
        max_results_per_query=settings.search.max_results_per_query,
        language=settings.search.language,
    )

"""Search pipeline: query generation, concurrent search and synthesis with typed outcomes."""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Optional, TypeVar

from ..exceptions import CancellationFailure, LLMSearchError, SearchFailure, UnexpectedFailure, ValidationFailure
from ..observability.logging import get_search_logger
from .models import Failed, PipelineResult, PipelineStage, Query, Synthesized

if TYPE_CHECKING:
    from fastmcp.dependencies import Progress

    from .orchestrator import SearchOrchestrator
    from .query_generator import QueryGenerator
    from .synthesizer import ResultSynthesizer

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RESULTS_PER_QUERY = 3
DEFAULT_LANGUAGE = "en"


class SearchPipeline:
    """Sequences QueryGenerator -> SearchOrchestrator -> ResultSynthesizer.

    ``run`` walks ``START -> GENERATING_QUERIES -> SEARCHING -> SYNTHESIZING -> DONE``
    and exits early to ``Failed`` from any state. Every exit is a
    :data:`PipelineResult`; no exception escapes except cancellation of the
    calling task itself. The pipeline holds no per-invocation state, so one
    instance can serve concurrent runs.
    """

    def __init__(
        self,
        query_generator: "QueryGenerator",
        orchestrator: "SearchOrchestrator",
        synthesizer: "ResultSynthesizer",
        max_results_per_query: int = DEFAULT_MAX_RESULTS_PER_QUERY,
        language: str = DEFAULT_LANGUAGE,
    ):
        self.query_generator = query_generator
        self.orchestrator = orchestrator
        self.synthesizer = synthesizer
        self.max_results_per_query = max_results_per_query
        self.language = language

    async def run(
        self,
        user_query: str,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
        progress: Optional["Progress"] = None,
    ) -> PipelineResult:
        """Answer ``user_query`` from web search results.

        Args:
            user_query: The natural-language question.
            cancel_event: Setting it abandons in-flight work and fails the run
                with a :class:`CancellationFailure`.
            timeout: Overall deadline in seconds, reported the same way.
            progress: Optional MCP progress tracker, advanced once per stage.

        Returns:
            ``Synthesized(text)`` or ``Failed(reason, stage)``.
        """
        log = get_search_logger()
        stage = PipelineStage.START

        try:
            if not user_query or not user_query.strip():
                raise ValidationFailure("Search query must not be empty", field="user_query")

            async with asyncio.timeout(timeout):
                try:
                    await _report_progress(progress, total=3)

                    # Phase 1: Query generation
                    stage = PipelineStage.GENERATING_QUERIES
                    log.info("stage_entered", stage=stage.value)
                    await _report_progress(progress, message="Generating search queries...")
                    queries = await self._guard(self.query_generator.generate(user_query), cancel_event)
                    await _report_progress(progress, increment=True)

                    # Phase 2: Fan-out search
                    stage = PipelineStage.SEARCHING
                    log.info("stage_entered", stage=stage.value, query_count=len(queries))
                    await _report_progress(progress, message=f"Searching ({len(queries)} queries)...")
                    search_queries = [Query(text=q, max_results=self.max_results_per_query, language=self.language) for q in queries]
                    aggregate = await self._guard(self.orchestrator.search(search_queries), cancel_event)
                    await _report_progress(progress, increment=True)

                    if aggregate.is_empty:
                        raise SearchFailure(
                            "No search results found for any generated queries",
                            metadata={"queries": queries, "queries_failed": aggregate.queries_failed},
                        )

                    # Phase 3: Synthesis
                    stage = PipelineStage.SYNTHESIZING
                    log.info("stage_entered", stage=stage.value, result_count=len(aggregate.results))
                    await _report_progress(progress, message="Synthesizing results...")
                    text = await self._guard(self.synthesizer.synthesize(user_query, aggregate.results), cancel_event)
                    await _report_progress(progress, increment=True)
                except TimeoutError as e:
                    # Raised by a collaborator, not by our deadline (that one surfaces at the block exit)
                    raise UnexpectedFailure(str(e) or type(e).__name__, original_exception=e) from e

        except TimeoutError as e:
            failure = CancellationFailure(f"Search pipeline timed out after {timeout}s", timeout=timeout)
            failure.__cause__ = e
            return self._failed(failure, stage)
        except LLMSearchError as e:
            return self._failed(e, stage)
        except Exception as e:
            logger.exception("Unexpected error in search pipeline")
            failure = UnexpectedFailure(str(e) or type(e).__name__, original_exception=e)
            failure.__cause__ = e
            return self._failed(failure, stage)

        log.info("pipeline_completed", result_length=len(text))
        return Synthesized(text=text)

    @staticmethod
    def _failed(failure: LLMSearchError, stage: PipelineStage) -> Failed:
        get_search_logger().warning("pipeline_failed", stage=stage.value, code=failure.code, error=failure.message)
        return Failed(reason=failure, stage=stage)

    @staticmethod
    async def _guard(work: Awaitable[T], cancel_event: asyncio.Event | None) -> T:
        """Await ``work`` unless ``cancel_event`` fires first, in which case it is abandoned."""
        if cancel_event is None:
            return await work

        if cancel_event.is_set():
            if asyncio.iscoroutine(work):
                work.close()
            raise CancellationFailure("Search pipeline was cancelled")

        task = asyncio.ensure_future(work)
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if cancel_event.is_set():
            # Let the abandoned work unwind; its results are discarded
            await asyncio.wait({task})
            if not task.cancelled():
                task.exception()
            raise CancellationFailure("Search pipeline was cancelled")
        return task.result()


async def _report_progress(
    progress: Optional["Progress"],
    message: str | None = None,
    increment: bool = False,
    total: int | None = None,
) -> None:
    """Report progress if a progress tracker is available."""
    if not progress:
        return
    if total is not None:
        await progress.set_total(total)
    if message:
        await progress.set_message(message)
    if increment:
        await progress.increment()

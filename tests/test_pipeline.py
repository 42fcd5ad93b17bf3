"""Tests for the search pipeline state machine."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from conftest import FakeBackend, FakeLLM, make_results

from mcp_server_llm_search.exceptions import (
    CancellationFailure,
    LLMFailure,
    ParsingFailure,
    SearchFailure,
    UnexpectedFailure,
    ValidationFailure,
)
from mcp_server_llm_search.search import (
    Failed,
    PipelineStage,
    QueryGenerator,
    ResultSynthesizer,
    SearchOrchestrator,
    SearchPipeline,
    Synthesized,
)


def _pipeline(llm, backend, **kwargs) -> SearchPipeline:
    return SearchPipeline(
        query_generator=QueryGenerator(llm),
        orchestrator=SearchOrchestrator(backend),
        synthesizer=ResultSynthesizer(llm),
        **kwargs,
    )


class TestSuccess:
    """Test the happy path."""

    async def test_end_to_end(self, queries_json):
        """Queries are generated, searched and synthesized into a cited answer."""
        first = make_results("py", 3, domain="docs.python.org")
        second = make_results("rp", 3, domain="realpython.com")
        answer = "Use asyncio.gather [docs.python.org](https://docs.python.org/py/1)."
        llm = FakeLLM(queries_json("asyncio gather", "asyncio tutorial"), answer)
        backend = FakeBackend(script={"asyncio gather": first, "asyncio tutorial": second})

        result = await _pipeline(llm, backend).run("How do I run coroutines concurrently?")

        assert result == Synthesized(text=answer)
        synthesis_prompt = llm.prompts[1]
        for included in first + second[:2]:
            assert included.url in synthesis_prompt
        assert second[2].url not in synthesis_prompt
        assert "- Source: docs.python.org" in synthesis_prompt

    async def test_search_queries_use_pipeline_settings(self, queries_json):
        """Each query carries the configured result count and language."""
        llm = FakeLLM(queries_json("one", "two"), "answer")
        backend = FakeBackend(script={"one": make_results("a", 1)})

        await _pipeline(llm, backend, max_results_per_query=7, language="de").run("q")

        assert [q.text for q in backend.queries] == ["one", "two"]
        assert all(q.max_results == 7 and q.language == "de" for q in backend.queries)

    async def test_partial_search_failure_still_synthesizes(self, queries_json):
        """One failing query does not fail the run."""
        llm = FakeLLM(queries_json("bad", "good"), "answer")
        backend = FakeBackend(script={"bad": SearchFailure("down"), "good": make_results("g", 2)})

        result = await _pipeline(llm, backend).run("q")

        assert isinstance(result, Synthesized)

    async def test_pipeline_is_reusable_concurrently(self, queries_json):
        """One pipeline instance serves concurrent runs."""
        llm = FakeLLM(queries_json("x"), queries_json("x"), "answer", "answer")
        backend = FakeBackend(script={"x": make_results("x", 1)}, delays={"x": 0.01})
        pipeline = _pipeline(llm, backend)

        results = await asyncio.gather(pipeline.run("first"), pipeline.run("second"))

        assert results == [Synthesized("answer"), Synthesized("answer")]


class TestValidation:
    """Test input validation."""

    @pytest.mark.parametrize("user_query", ["", "   ", "\n\t"])
    async def test_empty_query(self, user_query):
        """Blank input fails before any model or backend call."""
        llm = FakeLLM()
        backend = FakeBackend()

        result = await _pipeline(llm, backend).run(user_query)

        assert isinstance(result, Failed)
        assert isinstance(result.reason, ValidationFailure)
        assert result.stage == PipelineStage.START
        assert llm.prompts == []
        assert backend.queries == []


class TestStageFailures:
    """Test failures raised inside each stage."""

    async def test_generation_failure_is_returned_unchanged(self):
        """An LLMFailure during generation is the Failed reason, and nothing is searched."""
        failure = LLMFailure("model not loaded")
        backend = FakeBackend()

        result = await _pipeline(FakeLLM(failure), backend).run("q")

        assert isinstance(result, Failed)
        assert result.reason is failure
        assert result.stage == PipelineStage.GENERATING_QUERIES
        assert backend.queries == []

    async def test_unparseable_queries(self):
        """Non-JSON query output fails with ParsingFailure."""
        result = await _pipeline(FakeLLM("I think you should search for cats"), FakeBackend()).run("q")

        assert isinstance(result, Failed)
        assert isinstance(result.reason, ParsingFailure)
        assert result.reason.failed_data == "I think you should search for cats"

    async def test_no_results(self, queries_json):
        """An empty aggregate fails with SearchFailure before synthesis."""
        llm = FakeLLM(queries_json("a", "b"))
        backend = FakeBackend(script={"a": [], "b": SearchFailure("down")})

        result = await _pipeline(llm, backend).run("q")

        assert isinstance(result, Failed)
        assert isinstance(result.reason, SearchFailure)
        assert result.stage == PipelineStage.SEARCHING
        assert result.message == "No search results found for any generated queries"
        assert len(llm.prompts) == 1

    async def test_no_generated_queries(self):
        """An empty query list ends in SearchFailure without backend calls."""
        backend = FakeBackend()

        result = await _pipeline(FakeLLM("[]"), backend).run("q")

        assert isinstance(result.reason, SearchFailure)
        assert backend.queries == []

    async def test_synthesis_failure(self, queries_json):
        """An LLMFailure during synthesis is returned with the synthesizing stage."""
        failure = LLMFailure("context length exceeded")
        llm = FakeLLM(queries_json("a"), failure)
        backend = FakeBackend(script={"a": make_results("a", 1)})

        result = await _pipeline(llm, backend).run("q")

        assert result.reason is failure
        assert result.stage == PipelineStage.SYNTHESIZING

    async def test_unexpected_exception_is_wrapped(self):
        """An exception outside the taxonomy becomes UnexpectedFailure."""
        boom = KeyError("missing")
        generator = AsyncMock(spec=QueryGenerator)
        generator.generate.side_effect = boom
        pipeline = SearchPipeline(generator, SearchOrchestrator(FakeBackend()), ResultSynthesizer(FakeLLM()))

        result = await pipeline.run("q")

        assert isinstance(result, Failed)
        assert isinstance(result.reason, UnexpectedFailure)
        assert result.reason.original_exception is boom

    async def test_collaborator_timeout_is_unexpected(self):
        """A TimeoutError from a stage is not mistaken for the pipeline deadline."""
        generator = AsyncMock(spec=QueryGenerator)
        generator.generate.side_effect = TimeoutError("read timed out")
        pipeline = SearchPipeline(generator, SearchOrchestrator(FakeBackend()), ResultSynthesizer(FakeLLM()))

        result = await pipeline.run("q", timeout=10)

        assert isinstance(result.reason, UnexpectedFailure)


class TestCancellation:
    """Test cancellation and deadlines."""

    async def test_cancel_during_search(self, queries_json):
        """Setting the cancel event abandons the search and skips synthesis."""
        cancel = asyncio.Event()
        llm = FakeLLM(queries_json("slow"))
        backend = FakeBackend(script={"slow": make_results("s", 1)}, delays={"slow": 5})
        pipeline = _pipeline(llm, backend)

        run = asyncio.create_task(pipeline.run("q", cancel_event=cancel))
        await asyncio.sleep(0.05)
        cancel.set()
        result = await asyncio.wait_for(run, timeout=1)

        assert isinstance(result, Failed)
        assert isinstance(result.reason, CancellationFailure)
        assert result.stage == PipelineStage.SEARCHING
        assert len(llm.prompts) == 1

    async def test_cancel_before_start(self):
        """An already-set event fails the run without calling the model."""
        cancel = asyncio.Event()
        cancel.set()
        llm = FakeLLM()

        result = await _pipeline(llm, FakeBackend()).run("q", cancel_event=cancel)

        assert isinstance(result.reason, CancellationFailure)
        assert llm.prompts == []

    async def test_unset_event_does_not_interfere(self, queries_json):
        """A cancel event that never fires leaves the run untouched."""
        llm = FakeLLM(queries_json("a"), "answer")
        backend = FakeBackend(script={"a": make_results("a", 1)})

        result = await _pipeline(llm, backend).run("q", cancel_event=asyncio.Event())

        assert result == Synthesized("answer")

    async def test_timeout(self, queries_json):
        """Exceeding the deadline fails with CancellationFailure."""
        llm = FakeLLM(queries_json("slow"))
        backend = FakeBackend(script={"slow": make_results("s", 1)}, delays={"slow": 5})

        result = await _pipeline(llm, backend).run("q", timeout=0.05)

        assert isinstance(result, Failed)
        assert isinstance(result.reason, CancellationFailure)
        assert result.reason.timeout == 0.05
        assert "timed out" in result.message


class TestProgress:
    """Test progress reporting."""

    async def test_progress_advances_per_stage(self, queries_json):
        """Progress gets a total of three and one increment per stage."""
        progress = AsyncMock()
        llm = FakeLLM(queries_json("a"), "answer")
        backend = FakeBackend(script={"a": make_results("a", 1)})

        await _pipeline(llm, backend).run("q", progress=progress)

        progress.set_total.assert_awaited_once_with(3)
        assert progress.increment.await_count == 3
        messages = [call.args[0] for call in progress.set_message.await_args_list]
        assert messages == ["Generating search queries...", "Searching (1 queries)...", "Synthesizing results..."]

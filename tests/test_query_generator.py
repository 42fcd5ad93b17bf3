"""Tests for LLM-based query generation."""

import pytest
from conftest import FakeLLM

from mcp_server_llm_search.exceptions import LLMFailure, ParsingFailure
from mcp_server_llm_search.search import GenerationConfig, QueryGenerator


class TestGenerate:
    """Test generating queries from model replies."""

    async def test_valid_json_array(self, queries_json):
        """A JSON array of strings becomes the query list, in order."""
        llm = FakeLLM(queries_json("python asyncio tutorial", "asyncio gather vs wait"))
        generator = QueryGenerator(llm)

        assert await generator.generate("How do I use asyncio?") == ["python asyncio tutorial", "asyncio gather vs wait"]

    async def test_prompt_contains_user_query(self, queries_json):
        """The prompt quotes the user query and asks for a JSON array."""
        llm = FakeLLM(queries_json("a"))
        await QueryGenerator(llm).generate("rust borrow checker")

        assert '"rust borrow checker"' in llm.prompts[0]
        assert "JSON array" in llm.prompts[0]

    async def test_model_and_config_are_forwarded(self, queries_json):
        """The configured model and generation config reach the client."""
        config = GenerationConfig(temperature=0.2)
        llm = FakeLLM(queries_json("a"))
        await QueryGenerator(llm, model="qwen3", config=config).generate("q")

        assert llm.calls[0] == {"model": "qwen3", "config": config}

    async def test_surrounding_whitespace_is_ignored(self):
        """The reply is trimmed before parsing."""
        llm = FakeLLM('\n  ["one", "two"]  \n')
        assert await QueryGenerator(llm).generate("q") == ["one", "two"]

    async def test_blank_queries_are_dropped(self):
        """Empty or whitespace-only entries are removed."""
        llm = FakeLLM('["one", "", "   ", " two "]')
        assert await QueryGenerator(llm).generate("q") == ["one", "two"]

    async def test_empty_array(self):
        """An empty array is valid and yields no queries."""
        assert await QueryGenerator(FakeLLM("[]")).generate("q") == []

    async def test_max_queries_caps_the_list(self, queries_json):
        """Only the first max_queries queries are kept."""
        llm = FakeLLM(queries_json("a", "b", "c", "d"))
        assert await QueryGenerator(llm, max_queries=2).generate("q") == ["a", "b"]

    async def test_llm_failure_propagates_unchanged(self):
        """An LLMFailure from the client is re-raised as the same object."""
        failure = LLMFailure("model offline", model="llama3.1")
        generator = QueryGenerator(FakeLLM(failure))

        with pytest.raises(LLMFailure) as exc_info:
            await generator.generate("q")
        assert exc_info.value is failure


class TestParsingFailures:
    """Test replies that are not a JSON array of strings."""

    @pytest.mark.parametrize(
        "reply",
        [
            "Here are some queries: python, asyncio",
            '["unterminated", ',
            "",
        ],
    )
    async def test_invalid_json(self, reply):
        """Non-JSON replies raise ParsingFailure carrying the raw reply."""
        with pytest.raises(ParsingFailure) as exc_info:
            await QueryGenerator(FakeLLM(reply)).generate("q")
        assert exc_info.value.failed_data == reply

    @pytest.mark.parametrize(
        "reply",
        [
            '{"queries": ["a", "b"]}',
            '"just a string"',
            '["a", 2, "c"]',
            '[["nested"]]',
        ],
    )
    async def test_wrong_shape(self, reply):
        """JSON that is not an array of strings raises ParsingFailure."""
        with pytest.raises(ParsingFailure, match="not a valid JSON array of strings") as exc_info:
            await QueryGenerator(FakeLLM(reply)).generate("q")
        assert exc_info.value.failed_data == reply

    async def test_code_fence_rejected_by_default(self):
        """A fenced reply is not valid JSON unless fences are allowed."""
        reply = '```json\n["a", "b"]\n```'
        with pytest.raises(ParsingFailure):
            await QueryGenerator(FakeLLM(reply)).generate("q")


class TestCodeFences:
    """Test the opt-in code fence handling."""

    @pytest.mark.parametrize(
        "reply",
        [
            '```json\n["a", "b"]\n```',
            '```\n["a", "b"]\n```',
            'Sure!\n```json\n["a", "b"]\n```\nHope that helps.',
        ],
    )
    async def test_fenced_reply_accepted(self, reply):
        """Fenced JSON is unwrapped when allowed."""
        generator = QueryGenerator(FakeLLM(reply), allow_code_fences=True)
        assert await generator.generate("q") == ["a", "b"]

    async def test_unfenced_reply_still_works(self):
        """Allowing fences does not require them."""
        generator = QueryGenerator(FakeLLM('["a"]'), allow_code_fences=True)
        assert await generator.generate("q") == ["a"]

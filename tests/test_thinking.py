"""Tests for thinking-segment extraction."""

import pytest

from mcp_server_llm_search.search import LlmTextResponse, ResponseParser, parse_thinking


def _response(text: str) -> LlmTextResponse:
    return LlmTextResponse(text=text, model="test-model")


class TestParseThinking:
    """Test splitting well-formed responses."""

    def test_thinking_and_answer(self):
        """Thinking is extracted and removed from the main content."""
        parsed = parse_thinking(_response("<think>hmm</think>Answer"))

        assert parsed.main_content == "Answer"
        assert parsed.thinking_content == "hmm"
        assert parsed.has_thinking is True

    def test_plain_answer(self):
        """A response without markers is returned unchanged."""
        parsed = parse_thinking(_response("Just an answer"))

        assert parsed.main_content == "Just an answer"
        assert parsed.thinking_content is None
        assert parsed.has_thinking is False

    def test_original_response_is_kept(self):
        """The parsed value carries the response it came from."""
        response = _response("<think>a</think>b")
        assert parse_thinking(response).original_response is response

    def test_surrounding_whitespace_is_trimmed(self):
        """Both segments are trimmed."""
        parsed = parse_thinking(_response("  <think>\n  step one\n  </think>\n\n  The answer.  "))

        assert parsed.thinking_content == "step one"
        assert parsed.main_content == "The answer."

    def test_multiline_thinking(self):
        """Thinking may span lines."""
        parsed = parse_thinking(_response("<think>line one\nline two\nline three</think>Result"))

        assert parsed.thinking_content == "line one\nline two\nline three"
        assert parsed.main_content == "Result"

    def test_answer_before_and_after_block(self):
        """Text on both sides of the block stays in the main content."""
        parsed = parse_thinking(_response("Intro <think>reasoning</think> outro"))

        assert parsed.main_content == "Intro  outro"
        assert parsed.thinking_content == "reasoning"

    def test_empty_thinking_block(self):
        """An empty block is stripped but does not count as thinking."""
        parsed = parse_thinking(_response("<think>   </think>Answer"))

        assert parsed.main_content == "Answer"
        assert parsed.thinking_content is None
        assert parsed.has_thinking is False


class TestMalformedThinking:
    """Test that malformed markup is treated as plain text."""

    @pytest.mark.parametrize(
        "text",
        [
            "<think>never closed, answer here",
            "answer</think> without opening",
            "</think>reversed<think>",
            "",
        ],
    )
    def test_malformed_returns_original(self, text):
        """Malformed input yields the original text with no thinking."""
        parsed = parse_thinking(_response(text))

        assert parsed.main_content == text
        assert parsed.thinking_content is None
        assert parsed.has_thinking is False


class TestParserProperties:
    """Test parser invariants."""

    def test_parsing_main_content_again_is_stable(self):
        """Parsing the main content again finds no thinking."""
        first = parse_thinking(_response("<think>x</think>Final answer"))
        second = parse_thinking(_response(first.main_content))

        assert second.main_content == first.main_content
        assert second.has_thinking is False

    @pytest.mark.parametrize(
        "text",
        [
            "<thi<think>x</think>nk>y</think>z",
            "<<think>a</think>think>b</think>c",
            "<think>a</think><thi<think>b</think>nk>c</think>done",
        ],
    )
    def test_spans_spliced_by_removal_are_stripped(self, text):
        """Markers reassembled from the leftover text are removed too."""
        first = parse_thinking(_response(text))
        second = parse_thinking(_response(first.main_content))

        assert first.has_thinking is True
        assert second.has_thinking is False
        assert second.main_content == first.main_content

    def test_spliced_span_leaves_only_trailing_text(self):
        """The first complete block is the thinking, the remainder is the answer."""
        parsed = parse_thinking(_response("<thi<think>x</think>nk>y</think>z"))

        assert parsed.thinking_content == "x"
        assert parsed.main_content == "z"

    def test_custom_markers(self):
        """Markers are configurable."""
        parser = ResponseParser(open_marker="[[", close_marker="]]")
        parsed = parser.parse(_response("[[plan]]Done"))

        assert parsed.thinking_content == "plan"
        assert parsed.main_content == "Done"

    def test_str_summarizes_lengths(self):
        """str() reports lengths, not content."""
        parsed = parse_thinking(_response("<think>abc</think>hello"))
        assert str(parsed) == "ThinkingResponse(main_content: 5 chars, has_thinking: True, thinking_content: 3 chars)"

"""Extraction of the thinking segment from reasoning-model responses."""

import re

from .models import LlmTextResponse, ThinkingResponse

OPEN_MARKER = "<think>"
CLOSE_MARKER = "</think>"


class ResponseParser:
    """Splits a response into its ``<think>...</think>`` segment and main content.

    Pure and total. Malformed markup (no closing marker, or a closing marker at
    or before the opening one) is treated as having no thinking segment at all.
    """

    def __init__(self, open_marker: str = OPEN_MARKER, close_marker: str = CLOSE_MARKER):
        self.open_marker = open_marker
        self.close_marker = close_marker
        self._span = re.compile(f"{re.escape(open_marker)}.*?{re.escape(close_marker)}", re.DOTALL)

    def parse(self, response: LlmTextResponse) -> ThinkingResponse:
        content = response.text

        start = content.find(self.open_marker)
        end = content.find(self.close_marker)
        if start == -1 or end == -1 or end <= start:
            return self._without_thinking(response)

        thinking = content[start + len(self.open_marker) : end].strip()
        main = content
        # Removing one span can splice a new one together from the text around it
        while (stripped := self._span.sub("", main)) != main:
            main = stripped
        main = main.strip()

        # An empty block still gets stripped from the main content
        return ThinkingResponse(
            main_content=main,
            thinking_content=thinking or None,
            has_thinking=bool(thinking),
            original_response=response,
        )

    @staticmethod
    def _without_thinking(response: LlmTextResponse) -> ThinkingResponse:
        return ThinkingResponse(
            main_content=response.text,
            thinking_content=None,
            has_thinking=False,
            original_response=response,
        )


_default_parser = ResponseParser()


def parse_thinking(response: LlmTextResponse) -> ThinkingResponse:
    """Parse ``response`` with the default ``<think>`` markers."""
    return _default_parser.parse(response)

"""Adapter exposing a browser-use chat model as a LanguageModelClient."""

import logging
import time
from typing import TYPE_CHECKING

from ..exceptions import LLMFailure
from ..search.models import GenerationConfig, LlmTextResponse

if TYPE_CHECKING:
    from browser_use.llm.base import BaseChatModel

logger = logging.getLogger(__name__)


class ChatModelClient:
    """Wraps a hosted chat model built by :func:`~mcp_server_llm_search.providers.build_chat_model`.

    The chat model is bound to one model at construction, and its sampling
    parameters are fixed there too; only the system prompt of ``config`` is
    applied per call.
    """

    def __init__(self, llm: "BaseChatModel"):
        self.llm = llm

    @property
    def model_name(self) -> str:
        return str(getattr(self.llm, "model", "unknown"))

    async def generate_text(self, prompt: str, model: str | None = None, config: GenerationConfig | None = None) -> LlmTextResponse:
        from browser_use.llm.messages import SystemMessage, UserMessage

        if model and model != self.model_name:
            logger.debug(f"Ignoring per-call model '{model}', chat model is bound to '{self.model_name}'")

        messages = []
        if config and config.system_prompt:
            messages.append(SystemMessage(content=config.system_prompt))
        messages.append(UserMessage(content=prompt))

        started = time.perf_counter()
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            raise LLMFailure(f"{self.model_name} request failed: {e}", model=self.model_name, prompt_preview=prompt) from e
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        completion = response.completion
        if not isinstance(completion, str):
            raise LLMFailure("Chat model returned a non-text completion", model=self.model_name, prompt_preview=prompt)

        usage = getattr(response, "usage", None)
        return LlmTextResponse(
            text=completion,
            model=self.model_name,
            tokens_generated=getattr(usage, "completion_tokens", None) if usage else None,
            generation_time_ms=elapsed_ms,
        )

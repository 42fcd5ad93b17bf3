"""OpenAI-compatible chat completions adapter (LM Studio and similar servers)."""

import logging
import time
from typing import Any

import httpx

from .._http import http_client
from ..exceptions import LLMFailure
from ..search.models import GenerationConfig, LlmTextResponse

logger = logging.getLogger(__name__)

DEFAULT_LMSTUDIO_URL = "http://localhost:1234"


class OpenAICompatibleClient:
    """LanguageModelClient for servers exposing ``/v1/chat/completions``."""

    name = "lmstudio"

    def __init__(
        self,
        base_url: str | None = None,
        default_model: str | None = None,
        api_key: str | None = None,
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or DEFAULT_LMSTUDIO_URL).rstrip("/")
        self.default_model = default_model
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def build_payload(prompt: str, model: str, config: GenerationConfig) -> dict[str, Any]:
        messages = []
        if config.system_prompt:
            messages.append({"role": "system", "content": config.system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {
            "model": model,
            "stream": False,
            "messages": messages,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "top_p": config.top_p,
        }
        if config.stop_sequences:
            payload["stop"] = list(config.stop_sequences)
        return payload

    async def generate_text(self, prompt: str, model: str | None = None, config: GenerationConfig | None = None) -> LlmTextResponse:
        model_name = model or self.default_model
        if not model_name:
            raise LLMFailure("No model specified for chat completion request", prompt_preview=prompt)

        payload = self.build_payload(prompt, model_name, config or GenerationConfig())

        started = time.perf_counter()
        try:
            async with http_client(self._client, self.timeout) as client:
                response = await client.post(f"{self.base_url}/v1/chat/completions", json=payload, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise LLMFailure(f"Chat completion request failed: {e}", model=model_name, prompt_preview=prompt) from e
        except ValueError as e:
            raise LLMFailure(f"Chat completion returned invalid JSON: {e}", model=model_name, prompt_preview=prompt) from e
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        choices = data.get("choices") or []
        if not choices:
            raise LLMFailure("Chat completion returned no choices", model=model_name, prompt_preview=prompt)

        content = (choices[0].get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}
        return LlmTextResponse(
            text=content,
            model=data.get("model") or model_name,
            tokens_generated=usage.get("completion_tokens"),
            generation_time_ms=elapsed_ms,
            metadata={"finish_reason": choices[0].get("finish_reason")},
        )

    async def list_models(self) -> list[str]:
        """Identifiers of the models the server can serve."""
        try:
            async with http_client(self._client, self.timeout) as client:
                response = await client.get(f"{self.base_url}/v1/models", headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LLMFailure(f"Failed to list models: {e}") from e

        return [m["id"] for m in data.get("data", []) if m.get("id")]

    async def is_healthy(self) -> bool:
        try:
            await self.list_models()
        except LLMFailure as e:
            logger.debug(f"Model server health check failed: {e}")
            return False
        return True

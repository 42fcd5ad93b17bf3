"""Ollama adapter speaking the native ``/api`` endpoints over httpx."""

import logging
from typing import Any

import httpx

from .._http import http_client
from ..exceptions import LLMFailure
from ..search.models import GenerationConfig, LlmTextResponse

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaClient:
    """LanguageModelClient backed by a local Ollama server."""

    name = "ollama"

    def __init__(
        self,
        base_url: str | None = None,
        default_model: str | None = None,
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or DEFAULT_OLLAMA_URL).rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self._client = client

    @staticmethod
    def build_payload(prompt: str, model: str, config: GenerationConfig) -> dict[str, Any]:
        """Map a generation request onto the ``/api/generate`` body."""
        options: dict[str, Any] = {
            "num_predict": config.max_tokens,
            "temperature": config.temperature,
            "top_p": config.top_p,
        }
        if config.stop_sequences:
            options["stop"] = list(config.stop_sequences)

        payload: dict[str, Any] = {"model": model, "prompt": prompt, "stream": False, "options": options}
        if config.system_prompt:
            payload["system"] = config.system_prompt
        return payload

    async def generate_text(self, prompt: str, model: str | None = None, config: GenerationConfig | None = None) -> LlmTextResponse:
        model_name = model or self.default_model
        if not model_name:
            raise LLMFailure("No model specified for Ollama request", prompt_preview=prompt)

        payload = self.build_payload(prompt, model_name, config or GenerationConfig())

        try:
            async with http_client(self._client, self.timeout) as client:
                response = await client.post(f"{self.base_url}/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise LLMFailure(f"Ollama request failed: {e}", model=model_name, prompt_preview=prompt) from e
        except ValueError as e:
            raise LLMFailure(f"Ollama returned invalid JSON: {e}", model=model_name, prompt_preview=prompt) from e

        if data.get("error"):
            raise LLMFailure(f"Ollama error: {data['error']}", model=model_name, prompt_preview=prompt)

        # total_duration is reported in nanoseconds
        duration_ns = data.get("total_duration")
        return LlmTextResponse(
            text=data.get("response", ""),
            model=data.get("model") or model_name,
            tokens_generated=data.get("eval_count"),
            generation_time_ms=duration_ns // 1_000_000 if isinstance(duration_ns, int) else None,
            metadata={"done": data.get("done", True)},
        )

    async def list_models(self) -> list[str]:
        """Names of the models installed on the server."""
        try:
            async with http_client(self._client, self.timeout) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LLMFailure(f"Failed to list Ollama models: {e}") from e

        return [m["name"] for m in data.get("models", []) if m.get("name")]

    async def is_healthy(self) -> bool:
        try:
            await self.list_models()
        except LLMFailure as e:
            logger.debug(f"Ollama health check failed: {e}")
            return False
        return True

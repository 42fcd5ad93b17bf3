"""Language model adapters and the factory selecting one from settings."""

from typing import TYPE_CHECKING

from ..search.models import GenerationConfig
from .base import LanguageModelClient
from .chat_model import ChatModelClient
from .ollama import OllamaClient
from .openai_compat import OpenAICompatibleClient

if TYPE_CHECKING:
    from ..config import LLMSettings


def build_llm_client(settings: "LLMSettings") -> LanguageModelClient:
    """Create the LanguageModelClient for the configured provider.

    Raises:
        LLMProviderError: If a hosted provider is misconfigured.
    """
    match settings.provider:
        case "ollama":
            return OllamaClient(base_url=settings.base_url, default_model=settings.model_name, timeout=settings.request_timeout)
        case "lmstudio":
            return OpenAICompatibleClient(
                base_url=settings.base_url,
                default_model=settings.model_name,
                api_key=settings.get_api_key_for_provider(),
                timeout=settings.request_timeout,
            )

    # Hosted providers pull in browser-use, import only when needed
    from ..providers import build_chat_model

    return ChatModelClient(build_chat_model(settings))


def build_generation_config(settings: "LLMSettings", system_prompt: str | None = None) -> GenerationConfig:
    return GenerationConfig(
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        top_p=settings.top_p,
        system_prompt=system_prompt,
    )


__all__ = [
    "ChatModelClient",
    "LanguageModelClient",
    "OllamaClient",
    "OpenAICompatibleClient",
    "build_generation_config",
    "build_llm_client",
]

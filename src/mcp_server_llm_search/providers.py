"""Hosted chat models for the hosted LLM providers, built on browser-use."""

from typing import TYPE_CHECKING

from browser_use import (
    ChatAnthropic,
    ChatAzureOpenAI,
    ChatBrowserUse,
    ChatGoogle,
    ChatGroq,
    ChatOpenAI,
    ChatVercel,
)

# Not re-exported from the browser_use top level
from browser_use.llm.aws.chat_bedrock import ChatAWSBedrock
from browser_use.llm.cerebras.chat import ChatCerebras
from browser_use.llm.deepseek.chat import ChatDeepSeek
from browser_use.llm.openrouter.chat import ChatOpenRouter

from .config import LOCAL_PROVIDERS, STANDARD_ENV_VAR_NAMES
from .exceptions import LLMProviderError

if TYPE_CHECKING:
    from browser_use.llm.base import BaseChatModel

    from .config import LLMSettings


def missing_key_message(provider: str) -> str:
    env_vars = STANDARD_ENV_VAR_NAMES.get(provider, [])
    names = [env_vars] if isinstance(env_vars, str) else list(env_vars)
    names.append("MCP_LLM_API_KEY")
    return f"API key required for provider '{provider}'. Set {' or '.join(names)}."


def build_chat_model(settings: "LLMSettings") -> "BaseChatModel":
    """Create the browser-use chat model for a hosted provider.

    Ollama and LM Studio are not handled here; they are spoken to directly by
    the httpx adapters in :mod:`mcp_server_llm_search.llm`. A custom
    ``base_url`` lifts the API key requirement so self-hosted OpenAI-compatible
    gateways work without one.

    Raises:
        LLMProviderError: Unsupported or local provider, missing API key or
            Azure endpoint, or the chat model rejected its arguments.
    """
    provider = settings.provider
    if provider in LOCAL_PROVIDERS:
        raise LLMProviderError(f"Unsupported provider: {provider} is served by the local HTTP adapters")

    api_key = settings.get_api_key_for_provider()
    if settings.requires_api_key() and not api_key and not settings.base_url:
        raise LLMProviderError(missing_key_message(provider))

    try:
        return _create_chat_model(provider, settings.model_name, api_key, settings)
    except LLMProviderError:
        raise
    except Exception as e:
        raise LLMProviderError(f"Failed to initialize {provider} LLM: {e}") from e


def _create_chat_model(provider: str, model: str, api_key: str | None, settings: "LLMSettings") -> "BaseChatModel":
    match provider:
        case "openai":
            return ChatOpenAI(model=model, api_key=api_key, base_url=settings.base_url)
        case "azure_openai":
            if not settings.azure_endpoint:
                raise LLMProviderError("Azure OpenAI requires AZURE_OPENAI_ENDPOINT or MCP_LLM_AZURE_ENDPOINT to be set.")
            return ChatAzureOpenAI(
                model=model,
                api_key=api_key,
                azure_endpoint=settings.azure_endpoint,
                api_version=settings.azure_api_version,
            )
        case "bedrock":
            return ChatAWSBedrock(model=model, aws_region=settings.aws_region)
        case "anthropic":
            return ChatAnthropic(model=model, api_key=api_key)
        case "google":
            return ChatGoogle(model=model, api_key=api_key)
        case "groq":
            return ChatGroq(model=model, api_key=api_key)
        case "deepseek":
            return ChatDeepSeek(model=model, api_key=api_key)
        case "cerebras":
            return ChatCerebras(model=model, api_key=api_key)
        case "browser_use":
            return ChatBrowserUse(model=model, api_key=api_key)
        case "openrouter":
            return ChatOpenRouter(model=model, api_key=api_key)
        case "vercel":
            return ChatVercel(model=model, api_key=api_key)
        case _:
            raise LLMProviderError(f"Unsupported provider: {provider}")

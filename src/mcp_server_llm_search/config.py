"""Configuration management using Pydantic settings with optional file persistence."""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Paths ---

APP_NAME = "mcp-server-llm-search"


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/mcp-server-llm-search)."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home() / ".config")).expanduser()
    else:
        base = Path("~/.config").expanduser()

    return base / APP_NAME


def get_config_file() -> Path:
    return get_config_dir() / "config.json"


def load_config_file() -> dict[str, Any]:
    """Load settings from the JSON config file if it exists."""
    config_file = get_config_file()
    if not config_file.exists():
        return {}

    try:
        text = config_file.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        return json.loads(text)
    except (OSError, json.JSONDecodeError):
        return {}


def save_config_file(config_data: dict[str, Any]) -> Path:
    """Save settings to the JSON config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config_data, indent=2), encoding="utf-8")
    return config_file


# Standard environment variable names for API keys (industry convention)
# For providers with multiple common env var names, use a list (first match wins)
STANDARD_ENV_VAR_NAMES: dict[str, str | list[str]] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],  # GEMINI_API_KEY takes priority
    "azure_openai": "AZURE_OPENAI_API_KEY",
    "groq": "GROQ_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "cerebras": "CEREBRAS_API_KEY",
    "browser_use": "BROWSER_USE_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "vercel": "VERCEL_API_KEY",
}

# Providers that don't require an API key
NO_KEY_PROVIDERS = frozenset({"ollama", "lmstudio", "bedrock"})

# Providers served directly over HTTP instead of through browser-use chat models
LOCAL_PROVIDERS = frozenset({"ollama", "lmstudio"})

ProviderType = Literal[
    "openai",
    "anthropic",
    "google",
    "azure_openai",
    "groq",
    "deepseek",
    "cerebras",
    "ollama",
    "lmstudio",
    "bedrock",
    "browser_use",
    "openrouter",
    "vercel",
]

SearchBackendType = Literal["duckduckgo", "brave"]


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_LLM_")

    provider: ProviderType = Field(default="ollama")
    model_name: str = Field(default="llama3.1")
    api_key: Optional[SecretStr] = Field(default=None, description="Generic API key override (highest priority)")
    base_url: Optional[str] = Field(default=None, description="Custom base URL for Ollama, LM Studio or OpenAI-compatible APIs")

    # Azure OpenAI specific
    azure_endpoint: Optional[str] = Field(default=None, description="Azure OpenAI endpoint URL")
    azure_api_version: Optional[str] = Field(default="2024-02-01", description="Azure OpenAI API version")

    # AWS Bedrock specific
    aws_region: Optional[str] = Field(default=None, description="AWS region for Bedrock")

    # Generation defaults
    max_tokens: int = Field(default=1000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    request_timeout: float = Field(default=300.0, gt=0, description="Timeout per LLM request in seconds")

    def get_api_key_for_provider(self) -> Optional[str]:
        """Resolve API key with priority: generic > standard > MCP-prefixed.

        Priority order:
        1. MCP_LLM_API_KEY (generic override, applies to any provider)
        2. <PROVIDER>_API_KEY (standard name, e.g., OPENAI_API_KEY, GEMINI_API_KEY)
        3. MCP_LLM_<PROVIDER>_API_KEY (MCP-prefixed fallback)

        Returns:
            The resolved API key or None if not found.
        """
        # 1. Generic override (highest priority)
        if self.api_key:
            return self.api_key.get_secret_value()

        # 2. Standard env var name(s) (industry convention)
        standard_vars = STANDARD_ENV_VAR_NAMES.get(self.provider)
        if standard_vars:
            # Handle both single string and list of strings
            if isinstance(standard_vars, str):
                standard_vars = [standard_vars]
            for var_name in standard_vars:
                key = os.environ.get(var_name)
                if key:
                    return key

        # 3. MCP-prefixed fallback
        mcp_var = f"MCP_LLM_{self.provider.upper()}_API_KEY"
        return os.environ.get(mcp_var)

    def requires_api_key(self) -> bool:
        """Check if the current provider requires an API key."""
        return self.provider not in NO_KEY_PROVIDERS


class SearchSettings(BaseSettings):
    """Search backend configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_SEARCH_")

    backends: list[SearchBackendType] = Field(default_factory=lambda: ["duckduckgo"], description="Backends in fallback priority order")
    brave_api_key: Optional[SecretStr] = Field(default=None, description="Brave Search API key (falls back to BRAVE_API_KEY)")
    max_results_per_query: int = Field(default=3, gt=0)
    language: str = Field(default="en")
    max_concurrency: int = Field(default=4, ge=1, description="Maximum searches in flight per pipeline run")
    backend_timeout: float = Field(default=30.0, gt=0, description="Timeout per backend call in seconds")

    def get_brave_api_key(self) -> Optional[str]:
        if self.brave_api_key:
            return self.brave_api_key.get_secret_value()
        return os.environ.get("BRAVE_API_KEY")


class PipelineSettings(BaseSettings):
    """Search pipeline behaviour."""

    model_config = SettingsConfigDict(env_prefix="MCP_PIPELINE_")

    max_queries: int = Field(default=3, gt=0, description="Maximum generated queries to search")
    synthesis_result_limit: int = Field(default=5, gt=0, description="Results included in the synthesis prompt")
    timeout: Optional[float] = Field(default=None, gt=0, description="Overall pipeline deadline in seconds")
    allow_code_fences: bool = Field(default=False, description="Accept query JSON wrapped in a markdown code fence")


TransportType = Literal["stdio", "streamable-http", "sse"]


class ServerSettings(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_SERVER_")

    logging_level: str = Field(default="INFO")
    transport: TransportType = Field(default="stdio", description="MCP transport: stdio, streamable-http, or sse")
    host: str = Field(default="127.0.0.1", description="Host for HTTP transports")
    port: int = Field(default=8384, description="Port for HTTP transports")


class AppSettings(BaseSettings):
    """Root application settings.

    Priority: Environment Variables > Config File > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="MCP_", extra="ignore")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    def save(self) -> Path:
        """Save current configuration to file (excluding secrets)."""
        data = self.model_dump(mode="json", exclude_none=True)
        # Remove secret values from saved config
        data.get("llm", {}).pop("api_key", None)
        data.get("search", {}).pop("brave_api_key", None)
        return save_config_file(data)


def _load_settings() -> AppSettings:
    """Load settings with file config as base, env vars overlay."""
    file_data = load_config_file()
    sections = {
        "llm": LLMSettings,
        "search": SearchSettings,
        "pipeline": PipelineSettings,
        "server": ServerSettings,
    }
    # Nested settings read their own env vars; file values only fill what env leaves unset
    kwargs: dict[str, Any] = {}
    for name, settings_cls in sections.items():
        section = file_data.get(name)
        if isinstance(section, dict):
            env_values = settings_cls().model_dump(exclude_unset=True)
            kwargs[name] = settings_cls(**{**section, **env_values})
    return AppSettings(**kwargs)


@lru_cache
def get_settings() -> AppSettings:
    """Get the process-wide settings, loaded on first use."""
    return _load_settings()

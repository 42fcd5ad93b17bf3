"""MCP server exposing the LLM-assisted web search pipeline as tools."""

import json
import logging
import os
import sys
import time
import uuid


def _configure_stdio_logging() -> None:
    """Configure logging for stdio MCP mode - all logs MUST go to stderr.

    In stdio mode, stdout is reserved exclusively for JSON-RPC messages.
    Any logging or print() to stdout corrupts the protocol stream.
    """
    # Suppress noisy loggers from dependencies BEFORE they're imported
    os.environ.setdefault("BROWSER_USE_LOGGING_LEVEL", "warning")

    # Force all logging to stderr
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root = logging.getLogger()
    root.handlers = [stderr_handler]
    root.setLevel(logging.WARNING)

    for logger_name in ["httpx", "httpcore", "asyncio", "browser_use", "openai", "anthropic"]:
        dep_logger = logging.getLogger(logger_name)
        dep_logger.setLevel(logging.WARNING)
        dep_logger.handlers = [stderr_handler]
        dep_logger.propagate = False


# Configure logging BEFORE importing browser_use and other noisy dependencies
_configure_stdio_logging()

# ruff: noqa: E402 - Intentional late imports after logging configuration
from fastmcp import FastMCP
from fastmcp.dependencies import CurrentContext, Progress
from fastmcp.server.context import Context
from fastmcp.server.tasks.config import TaskConfig

from .config import LOCAL_PROVIDERS, get_settings
from .exceptions import LLMProviderError, SearchFailure
from .factory import build_pipeline
from .llm import build_llm_client
from .observability import bind_search_context, clear_search_context, get_search_logger, setup_structured_logging
from .search import Failed, LlmTextResponse, Synthesized, parse_thinking

logger = logging.getLogger("mcp_server_llm_search")

_server_start_time = time.time()


def serve() -> FastMCP:
    """Create and configure the MCP server."""
    settings = get_settings()
    setup_structured_logging(settings.server.logging_level)
    logger.setLevel(getattr(logging, settings.server.logging_level.upper()))

    server = FastMCP("mcp_server_llm_search")

    @server.tool(task=TaskConfig(mode="optional"))
    async def web_search(
        query: str,
        ctx: Context = CurrentContext(),
        progress: Progress = Progress(),
    ) -> str:
        """
        Answer a question from live web search results.

        The question is expanded into a few focused search queries, those are
        searched concurrently, and the results are synthesized into one answer
        citing its sources as markdown links.

        Args:
            query: The natural-language question to answer

        Returns:
            The synthesized answer as markdown, or an "Error: ..." message
        """
        request_id = str(uuid.uuid4())
        bind_search_context(request_id, query)
        search_logger = get_search_logger()

        try:
            try:
                pipeline = build_pipeline(settings)
            except (LLMProviderError, SearchFailure) as e:
                logger.error(f"Pipeline initialization failed: {e}")
                return f"Error: {e.message}"

            await ctx.info(f"Searching: {query}")
            search_logger.info("request_received")
            result = await pipeline.run(query, timeout=settings.pipeline.timeout, progress=progress)

            match result:
                case Synthesized(text=text):
                    # Reasoning models prepend their thinking, which is not part of the answer
                    return parse_thinking(LlmTextResponse(text=text, model=settings.llm.model_name)).main_content
                case Failed(reason=reason):
                    await ctx.info(f"Search failed: {reason.message}")
                    return f"Error: {reason.message}"
        finally:
            clear_search_context()

    @server.tool()
    async def split_thinking(text: str) -> str:
        """
        Separate a model's <think>...</think> reasoning from its answer.

        Args:
            text: Raw model output

        Returns:
            JSON object with main_content, thinking_content and has_thinking
        """
        parsed = parse_thinking(LlmTextResponse(text=text, model="unknown"))
        return json.dumps(
            {
                "main_content": parsed.main_content,
                "thinking_content": parsed.thinking_content,
                "has_thinking": parsed.has_thinking,
            },
            indent=2,
        )

    @server.tool()
    async def health_check() -> str:
        """
        Health check endpoint with configuration and model server status.

        Returns:
            JSON object with server health status
        """
        import psutil

        llm_reachable: bool | None = None
        if settings.llm.provider in LOCAL_PROVIDERS:
            client = build_llm_client(settings.llm)
            llm_reachable = await client.is_healthy()

        memory_info = psutil.Process().memory_info()
        return json.dumps(
            {
                "status": "healthy" if llm_reachable is not False else "degraded",
                "uptime_seconds": round(time.time() - _server_start_time, 1),
                "memory_mb": round(memory_info.rss / 1024 / 1024, 1),
                "llm": {"provider": settings.llm.provider, "model": settings.llm.model_name, "reachable": llm_reachable},
                "search_backends": list(settings.search.backends),
            },
            indent=2,
        )

    return server


def main() -> None:
    """Entry point for MCP server."""
    settings = get_settings()
    transport = settings.server.transport
    server_instance = serve()

    logger.info(f"Starting MCP llm-search server (provider: {settings.llm.provider}, transport: {transport})")
    if transport == "stdio":
        server_instance.run(transport="stdio")
    elif transport in ("streamable-http", "sse"):
        logger.info(f"HTTP server at http://{settings.server.host}:{settings.server.port}/mcp")
        server_instance.run(transport=transport, host=settings.server.host, port=settings.server.port)
    else:
        raise ValueError(f"Unknown transport: {transport}")


if __name__ == "__main__":
    main()

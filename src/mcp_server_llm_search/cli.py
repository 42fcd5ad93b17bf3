"""CLI interface for the LLM-assisted web search pipeline."""

import asyncio
import uuid

import typer

from .config import LOCAL_PROVIDERS, get_settings
from .exceptions import LLMFailure, LLMProviderError, SearchFailure
from .observability import bind_search_context, clear_search_context, setup_structured_logging
from .search import Failed, LlmTextResponse, Synthesized, parse_thinking

app = typer.Typer(help="Web search answered by a language model")


@app.command()
def search(
    query: str = typer.Argument(..., help="Question to answer from web search results"),
    show_thinking: bool = typer.Option(False, "--show-thinking", help="Also print the model's <think> reasoning"),
    timeout: float = typer.Option(None, "--timeout", "-t", help="Overall deadline in seconds"),
) -> None:
    """Generate queries, search the web and synthesize a cited answer."""
    from .factory import build_pipeline

    settings = get_settings()
    setup_structured_logging(settings.server.logging_level)

    try:
        pipeline = build_pipeline(settings)
    except (LLMProviderError, SearchFailure) as e:
        print(f"Error: {e.message}")
        raise typer.Exit(1) from e

    async def _search():
        bind_search_context(str(uuid.uuid4()), query)
        try:
            return await pipeline.run(query, timeout=timeout if timeout is not None else settings.pipeline.timeout)
        finally:
            clear_search_context()

    result = asyncio.run(_search())

    match result:
        case Synthesized(text=text):
            parsed = parse_thinking(LlmTextResponse(text=text, model=settings.llm.model_name))
            if show_thinking and parsed.has_thinking:
                print("--- thinking ---")
                print(parsed.thinking_content)
                print("--- answer ---")
            print(parsed.main_content)
        case Failed(reason=reason, stage=stage):
            where = f" (during {stage.value})" if stage else ""
            print(f"Error{where}: {reason.message}")
            raise typer.Exit(1)


@app.command()
def models() -> None:
    """List models available on the local model server."""
    from .llm import build_llm_client

    settings = get_settings()
    if settings.llm.provider not in LOCAL_PROVIDERS:
        print(f"Listing models is only supported for local providers ({', '.join(sorted(LOCAL_PROVIDERS))})")
        raise typer.Exit(1)

    client = build_llm_client(settings.llm)
    try:
        names = asyncio.run(client.list_models())
    except LLMFailure as e:
        print(f"Error: {e.message}")
        raise typer.Exit(1) from e

    if not names:
        print("No models installed.")
    for name in names:
        marker = "*" if name == settings.llm.model_name else " "
        print(f"{marker} {name}")


@app.command()
def config(
    save: bool = typer.Option(False, "--save", help="Write the effective settings to the config file, without API keys"),
) -> None:
    """Show current configuration."""
    settings = get_settings()
    print(f"Provider: {settings.llm.provider}")
    print(f"Model: {settings.llm.model_name}")
    print(f"Base URL: {settings.llm.base_url or '(default)'}")
    print(f"Search Backends: {', '.join(settings.search.backends)}")
    print(f"Results Per Query: {settings.search.max_results_per_query}")
    print(f"Max Concurrency: {settings.search.max_concurrency}")
    print(f"Max Queries: {settings.pipeline.max_queries}")
    print(f"Synthesis Results: {settings.pipeline.synthesis_result_limit}")
    print(f"Timeout: {settings.pipeline.timeout or '(none)'}")

    if save:
        try:
            path = settings.save()
        except OSError as e:
            print(f"Error: could not write config file: {e}")
            raise typer.Exit(1) from e
        print(f"Saved to {path}")


@app.command()
def serve() -> None:
    """Run the MCP server using the configured transport."""
    from .server import main

    main()


if __name__ == "__main__":
    app()

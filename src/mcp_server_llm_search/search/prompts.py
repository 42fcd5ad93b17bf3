"""LLM prompts for query generation and result synthesis."""

from collections.abc import Callable, Sequence

from .models import SearchResult


def get_query_generation_prompt(user_query: str) -> str:
    """Generate the prompt asking the model for focused search queries."""
    return f"""You are an AI query generator. Given a user query, generate 2-3 precise,
focused web search queries that will help find the most relevant information.

Guidelines:
- Create queries that capture different aspects of the original query
- Use clear, concise language
- Avoid overly broad or vague queries

User Query: "{user_query}"

Respond with a JSON array of search queries, like:
["query1", "query2", "query3"]"""


def format_search_result(result: SearchResult, domain: str) -> str:
    return f"- Source: {domain}\n  Title: {result.title}\n  Snippet: {result.snippet}\n  URL: {result.url}"


def get_synthesis_prompt(original_query: str, results: Sequence[SearchResult], extract_domain: Callable[[str], str]) -> str:
    """Generate the synthesis prompt from the original query and the included results."""
    results_text = "\n\n".join(format_search_result(r, extract_domain(r.url)) for r in results)

    return f"""You are an AI that synthesizes web search results into a coherent, concise response.

Original Query: "{original_query}"

Search Results:
{results_text}

Instructions:
- Analyze the search results thoroughly
- Generate a comprehensive, well-structured response
- Cite sources where appropriate using the format [Source Name](URL)
- If results are insufficient, acknowledge the limitations instead of inventing content
- Be concise but informative"""

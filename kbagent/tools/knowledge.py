"""
Knowledge Base Search Tool
==========================

Wraps one knowledge base as a tool the model can call:

    search-knowledge-base-<name>(query: str, k: int = 2)

The tool runs a similarity search and returns a compact JSON list holding
only each result's ``content`` and ``metadata``. Similarity scores and
document IDs are left out of the tool output.
"""

import json
from typing import Awaitable, Callable, Sequence

from kbagent.knowledge.types import KnowledgeBase, SearchResult
from kbagent.tools import Tool, format_error, parse_params
from kbagent.utils.logger import Logger

logger = Logger("KnowledgeTool")

# search(kb_name, query, k) -> results
SearchFunction = Callable[[str, str, int], Awaitable[Sequence[SearchResult]]]

DEFAULT_TOP_K = 2

TOOL_NAME_PREFIX = "search-knowledge-base-"


def knowledge_tool_schema(default_k: int = DEFAULT_TOP_K) -> dict:
    """JSON Schema for the knowledge search parameters."""
    return {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Search query"
            },
            "k": {
                "type": "integer",
                "default": default_k,
                "description": "Top k number of results to return"
            }
        },
        "required": ["query"]
    }


def make_knowledge_tool(
    kb: KnowledgeBase,
    search: SearchFunction,
    default_k: int = DEFAULT_TOP_K
) -> Tool:
    """
    Build the search tool for a knowledge base.

    Args:
        kb: The knowledge base to search
        search: Async search function called as ``search(kb.name, query, k)``
        default_k: Number of results when the model omits ``k``

    Returns:
        A Tool named ``search-knowledge-base-<kb.name>``
    """
    schema = knowledge_tool_schema(default_k)
    kb_logger = logger.child(kb.name)

    def parse(raw: str | dict) -> dict:
        kb_logger.debug("Parsing params", {"raw": raw})
        params = parse_params(raw, schema)
        # JSON Schema "integer" also admits integral floats such as 2.0
        params["k"] = int(params["k"])
        kb_logger.debug("Valid params", params)
        return params

    async def search_knowledge_base(params: dict) -> str:
        kb_logger.debug("Searching knowledge base", params)
        try:
            results = await search(kb.name, params["query"], params["k"])
        except Exception as e:
            kb_logger.error("Error querying knowledge base", e)
            raise

        projected = [
            {"content": result.content, "metadata": result.metadata}
            for result in results
        ]
        return json.dumps(projected, default=str)

    description = f"Search the '{kb.name}' knowledge base for relevant documents."
    if kb.description:
        description = f"{description} {kb.description}"

    return Tool(
        name=f"{TOOL_NAME_PREFIX}{kb.name}",
        description=description,
        parameters=schema,
        function=search_knowledge_base,
        parse=parse,
        format_error=format_error,
    )

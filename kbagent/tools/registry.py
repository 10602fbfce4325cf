"""
Tool Registry
=============

Builds the tool list an agent gets for one turn:

    declared tools (from the store)  +  one search tool per knowledge base

Tools are built fresh for every turn and never persisted. Names are not
validated or deduplicated here; if a declared tool and a knowledge tool
share a name, both are handed to the inference engine.
"""

from typing import TYPE_CHECKING

import httpx

from kbagent.store.models import AgentConfig
from kbagent.tools import Tool
from kbagent.tools.declared import DEFAULT_TIMEOUT_SECONDS, create_tool_from_record
from kbagent.tools.knowledge import DEFAULT_TOP_K, SearchFunction, make_knowledge_tool
from kbagent.utils.logger import Logger

if TYPE_CHECKING:
    from kbagent.store import ThreadStore

logger = Logger("ToolRegistry")


class ToolRegistry:
    """
    Builds per-turn tool lists for agents.

    Example:
        registry = ToolRegistry(store, knowledge.search_knowledge_base)

        tools = await registry.build(agent)
        functions = [tool.to_openai_function() for tool in tools]
    """

    def __init__(
        self,
        store: "ThreadStore",
        search: SearchFunction,
        http_client: httpx.AsyncClient | None = None,
        http_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        default_top_k: int = DEFAULT_TOP_K
    ):
        """
        Args:
            store: Source of the agent's declared tool records
            search: Knowledge search used by every knowledge tool
            http_client: Optional shared client for declared HTTP tools
            http_timeout: Request timeout for declared tools
            default_top_k: Result count when the model omits ``k``
        """
        self.store = store
        self.search = search
        self.http_client = http_client
        self.http_timeout = http_timeout
        self.default_top_k = default_top_k

    async def build(self, agent: AgentConfig) -> list[Tool]:
        """
        Build the full tool list for an agent.

        Args:
            agent: The agent whose tools to build

        Returns:
            Declared tools followed by knowledge search tools
        """
        records = await self.store.get_agent_tools(agent.id)

        declared = [
            create_tool_from_record(record, client=self.http_client, timeout=self.http_timeout)
            for record in records
        ]
        knowledge = [
            make_knowledge_tool(kb, self.search, default_k=self.default_top_k)
            for kb in agent.knowledge_bases
        ]

        tools = declared + knowledge
        logger.debug(
            f"Built {len(tools)} tools for agent {agent.name}",
            {"declared": len(declared), "knowledge": len(knowledge)}
        )
        return tools

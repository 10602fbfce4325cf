"""
KBAgent - Main Entry Point
==========================

Runs one turn on a thread from the command line. It:
1. Loads configuration
2. Opens the thread store and registers the knowledge bases it references
3. Wires the tool registry and the OpenAI inference engine
4. Runs the turn and prints the answer

Run with:
    python -m kbagent.main --thread T1 "How do I rotate API keys?"

Or after installing:
    kbagent --thread T1 --agent writer "Summarize what we discussed"
"""

import argparse
import asyncio
import sys

import httpx

from kbagent.agent import ThreadRunner, TurnLimits
from kbagent.errors import KBAgentError
from kbagent.inference.openai_engine import OpenAIInference
from kbagent.inference.types import Message
from kbagent.knowledge import KnowledgeService
from kbagent.store import ThreadStore
from kbagent.tools import ToolRegistry
from kbagent.utils.config import Config, get_config
from kbagent.utils.logger import Logger

main_logger = Logger("Main")


def build_runner(config: Config, http_client: httpx.AsyncClient | None = None) -> ThreadRunner:
    """
    Create a ThreadRunner wired from configuration.

    Args:
        config: Application configuration
        http_client: Optional shared client for declared HTTP tools

    Raises:
        ConfigurationError: If a knowledge base names an unsupported provider
    """
    store = ThreadStore(config.thread.store_path)

    knowledge = KnowledgeService(config.knowledge.directory, api_key=config.openai.api_key)
    for kb in store.list_knowledge_bases():
        knowledge.register(kb)

    registry = ToolRegistry(
        store,
        knowledge.search_knowledge_base,
        http_client=http_client,
        http_timeout=config.tools.http_timeout_seconds,
        default_top_k=config.knowledge.default_top_k,
    )

    inference = OpenAIInference(
        api_key=config.openai.api_key,
        max_iterations=config.tools.max_iterations,
    )

    return ThreadRunner(
        store,
        registry,
        inference,
        limits=TurnLimits(
            history_limit=config.thread.history_limit,
            window_limit=config.thread.context_window_limit,
        ),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kbagent",
        description="Run one conversational turn on a stored thread."
    )
    parser.add_argument("--thread", required=True, help="Thread ID to continue")
    parser.add_argument("--agent", default=None, help="Agent name (defaults to the thread's agent)")
    parser.add_argument("message", help="The user's message")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """
    Main async entry point.

    Returns:
        Process exit code
    """
    args = parse_args(argv)

    try:
        config = get_config()

        async with httpx.AsyncClient(timeout=config.tools.http_timeout_seconds) as http_client:
            runner = build_runner(config, http_client)
            answer = await runner.run_turn(
                args.thread,
                Message.user(args.message),
                agent_name=args.agent,
            )

    except (KBAgentError, ValueError) as e:
        main_logger.error("Turn failed", e)
        return 1

    print(answer.content or "")
    return 0


def run():
    """
    Synchronous entry point.

    This is called when running with `kbagent` command.
    """
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()

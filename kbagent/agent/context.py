"""
Context Assembly
================

Assembles the context window for one turn from:
- The agent's prompt (as the system message)
- The thread's prior messages
- The new user message

Window Rule:
    window = ([system] + prior[-history_limit:] + [new])[-window_limit:]

    With the defaults (9 and 10) a short thread keeps its system message:

        prior = [m1, m2]        ->  [system, m1, m2, new]

    but a long one loses it, because the first cut keeps nine prior
    messages and the second cut keeps the last ten of the eleven:

        prior = [m1 .. m20]     ->  [m12 .. m20, new]

    Both cuts are applied exactly as written; the system message is not
    pinned.

Agent Resolution:
    1. An explicitly named agent, looked up by name
    2. Otherwise the thread's default agent, looked up by ID
    3. Otherwise the turn cannot run (ConfigurationError)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from kbagent.errors import ConfigurationError, NotFoundError
from kbagent.inference.types import Message
from kbagent.store.models import AgentConfig, ThreadDetails
from kbagent.utils.logger import Logger

if TYPE_CHECKING:
    from kbagent.store import ThreadStore

logger = Logger("Context")

HISTORY_LIMIT = 9
WINDOW_LIMIT = 10


def build_context_window(
    system: Message,
    prior: list[Message],
    new: Message,
    history_limit: int = HISTORY_LIMIT,
    window_limit: int = WINDOW_LIMIT
) -> list[Message]:
    """
    Build the messages sent to the model.

    Args:
        system: The agent's system message
        prior: All prior messages of the thread, oldest first
        new: The new user message
        history_limit: Prior messages kept by the first cut
        window_limit: Messages kept by the second cut

    Returns:
        ``([system] + prior[-history_limit:] + [new])[-window_limit:]``
    """
    return ([system] + prior[-history_limit:] + [new])[-window_limit:]


@dataclass
class AssembledContext:
    """
    The context for one turn.

    Attributes:
        agent: The agent answering the turn
        system_message: The system message built from the agent's prompt
        messages: The context window handed to the model
        history_size: Number of prior messages in the thread
    """
    agent: AgentConfig
    system_message: Message
    messages: list[Message]
    history_size: int


class ContextAssembler:
    """
    Resolves the agent for a turn and builds its context window.

    Example:
        assembler = ContextAssembler(store)

        agent = await assembler.resolve_agent(thread, agent_name=None)
        context = await assembler.assemble(thread, agent, Message.user("Hi"))

        await engine.infer(model=agent.primary_model, messages=context.messages, ...)
    """

    def __init__(
        self,
        store: "ThreadStore",
        history_limit: int = HISTORY_LIMIT,
        window_limit: int = WINDOW_LIMIT
    ):
        self.store = store
        self.history_limit = history_limit
        self.window_limit = window_limit

    async def resolve_agent(self, thread: ThreadDetails, agent_name: str | None = None) -> AgentConfig:
        """
        Pick the agent for a turn.

        Raises:
            NotFoundError: If the named agent or the thread's default agent
                does not exist
            ConfigurationError: If no agent is named and the thread has no
                default agent
        """
        if agent_name:
            agent = await self.store.get_agent_by_name(agent_name)
            if agent is None:
                raise NotFoundError(f"Agent '{agent_name}' not found")
            return agent

        if thread.default_agent_id:
            agent = await self.store.get_agent_by_id(thread.default_agent_id)
            if agent is None:
                raise NotFoundError(
                    f"Default agent '{thread.default_agent_id}' of thread '{thread.id}' not found"
                )
            return agent

        raise ConfigurationError("No agent specified and no default agent set for the thread")

    async def assemble(
        self,
        thread: ThreadDetails,
        agent: AgentConfig,
        new_message: Message
    ) -> AssembledContext:
        """
        Build the context window for a turn.

        Args:
            thread: The thread the turn belongs to
            agent: The agent answering
            new_message: The user's new message (not yet stored)
        """
        system_message = Message.system(agent.prompt)
        prior = await self.store.get_messages_by_thread_id(thread.id)

        window = build_context_window(
            system_message,
            prior,
            new_message,
            history_limit=self.history_limit,
            window_limit=self.window_limit
        )

        logger.debug(
            f"Assembled context for thread {thread.id}",
            {"prior": len(prior), "window": len(window)}
        )

        return AssembledContext(
            agent=agent,
            system_message=system_message,
            messages=window,
            history_size=len(prior),
        )

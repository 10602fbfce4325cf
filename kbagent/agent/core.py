"""
Agent Core
==========

Runs one conversational turn on a thread.

A turn:
1. Loads the thread
2. Resolves the agent (named, else the thread's default)
3. Assembles the context window from the agent's prompt and the history
4. Builds the agent's tools (declared + knowledge base search)
5. Runs inference once, collecting every message it produces
6. Appends the new user message and everything produced to the thread
7. Returns the final assistant message

Turn Flow:
    thread_id, new_message
         │
         ▼
    Load Thread ──── missing ───► NotFoundError
         │
         ▼
    Resolve Agent ── none ──────► NotFoundError / ConfigurationError
         │
         ▼
    Assemble Context + Build Tools
         │
         ▼
    Inference (on_message collects produced messages)
         │
         ▼
    Persist [new_message, *produced] ── fails ──► PersistenceError
         │
         ▼
    Final Message

Nothing is retried and nothing is caught for recovery: any failure aborts
the turn and reaches the caller unchanged. A turn that fails before step 6
writes nothing to the thread.
"""

from dataclasses import dataclass
from typing import Any, Callable

from kbagent.agent.context import HISTORY_LIMIT, WINDOW_LIMIT, ContextAssembler
from kbagent.errors import NotFoundError
from kbagent.inference import InferenceEngine
from kbagent.inference.types import Message, OutputMessage, UserMessage
from kbagent.store import ThreadStore
from kbagent.tools import ToolRegistry
from kbagent.utils.logger import Logger

logger = Logger("Agent")

# observer(event, data)
TurnObserver = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class TurnLimits:
    """Context window sizes for a turn."""
    history_limit: int = HISTORY_LIMIT
    window_limit: int = WINDOW_LIMIT


class ThreadRunner:
    """
    Runs conversational turns against a thread store.

    The runner coordinates:
    - Agent resolution and context assembly
    - Per-turn tool building
    - One inference call per turn
    - Persisting the turn's messages

    Example:
        runner = ThreadRunner(store, ToolRegistry(store, knowledge.search_knowledge_base), engine)

        answer = await runner.run_turn("T1", Message.user("How do I rotate keys?"))
        print(answer.content)

        # Use a different agent for one turn
        answer = await runner.run_turn("T1", Message.user("Summarize"), agent_name="writer")
    """

    def __init__(
        self,
        store: ThreadStore,
        tools: ToolRegistry,
        inference: InferenceEngine,
        observer: TurnObserver | None = None,
        limits: TurnLimits | None = None
    ):
        """
        Args:
            store: Thread, agent and message store
            tools: Builds each agent's tool list
            inference: Engine that runs the model
            observer: Optional callback for turn lifecycle events
            limits: Context window sizes
        """
        limits = limits or TurnLimits()

        self.store = store
        self.tools = tools
        self.inference = inference
        self.observer = observer
        self.context_assembler = ContextAssembler(
            store,
            history_limit=limits.history_limit,
            window_limit=limits.window_limit
        )

    def _emit(self, event: str, **data: Any) -> None:
        if self.observer is not None:
            self.observer(event, data)

    async def run_turn(
        self,
        thread_id: str,
        new_message: UserMessage,
        agent_name: str | None = None
    ) -> OutputMessage:
        """
        Run one turn on a thread.

        Args:
            thread_id: The thread to continue
            new_message: The user's new message
            agent_name: Agent to use instead of the thread's default

        Returns:
            The final assistant message

        Raises:
            NotFoundError: Thread or agent does not exist
            ConfigurationError: No agent named and no default agent set
            UpstreamError: Inference failed
            PersistenceError: The turn's messages could not be stored
        """
        logger.info(f"Running turn on thread {thread_id}: {(new_message.content or '')[:50]}...")
        self._emit("turn_started", thread_id=thread_id, agent_name=agent_name)

        try:
            with logger.timer(f"Turn on thread {thread_id}"):
                return await self._run(thread_id, new_message, agent_name)
        except Exception as e:
            logger.error(f"Turn on thread {thread_id} failed", e)
            self._emit("turn_failed", thread_id=thread_id, error=e)
            raise

    async def _run(
        self,
        thread_id: str,
        new_message: Message,
        agent_name: str | None
    ) -> Message:
        # 1. Load the thread
        thread = await self.store.get_thread_details_by_id(thread_id)
        if thread is None:
            raise NotFoundError(f"Thread '{thread_id}' not found")

        # 2. Resolve the agent
        agent = await self.context_assembler.resolve_agent(thread, agent_name)
        self._emit("agent_resolved", thread_id=thread_id, agent_id=agent.id, agent_name=agent.name)

        # 3. Assemble the context window
        context = await self.context_assembler.assemble(thread, agent, new_message)
        self._emit(
            "context_built",
            thread_id=thread_id,
            history_size=context.history_size,
            window_size=len(context.messages)
        )

        # 4. Build tools
        tools = await self.tools.build(agent)
        self._emit("tools_built", thread_id=thread_id, tools=[tool.name for tool in tools])

        # 5. Inference
        produced: list[Message] = [new_message]
        output = await self.inference.infer(
            model=agent.primary_model,
            messages=context.messages,
            tools=tools or None,
            on_message=produced.append,
        )
        self._emit("inference_completed", thread_id=thread_id, produced=len(produced) - 1)

        # 6. Persist everything from this turn
        await self.store.add_messages_to_thread(thread_id, produced)
        self._emit("messages_persisted", thread_id=thread_id, count=len(produced))

        logger.info(
            f"Turn complete on thread {thread_id}",
            {"agent": agent.name, "messages": len(produced)}
        )
        self._emit("turn_completed", thread_id=thread_id, output=output)
        return output

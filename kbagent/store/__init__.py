"""
Thread Store
============

Holds threads, agents, declared tools and the message log of every thread.

Everything lives in memory. When a storage path is given, the whole store
is written to a single JSON file after each change and read back on
startup:

    {
        "threads":  [ThreadDetails, ...],
        "agents":   [AgentConfig, ...],
        "tools":    [ToolRecord, ...],
        "messages": {"<thread_id>": [Message, ...]}
    }

Lookups return ``None`` for unknown IDs and names; deciding whether that is
an error is up to the caller. Message appends are serialized with an
``asyncio.Lock`` and either fully succeed or raise ``PersistenceError``.
"""

import asyncio
import json
import uuid
from pathlib import Path

from kbagent.errors import ConfigurationError, NotFoundError, PersistenceError
from kbagent.inference.types import Message
from kbagent.knowledge.types import KnowledgeBase
from kbagent.store.models import AgentConfig, ThreadDetails, ToolRecord
from kbagent.utils.logger import Logger

logger = Logger("ThreadStore")


class ThreadStore:
    """
    In-process store with optional JSON persistence.

    Example:
        store = ThreadStore(Path("data/threads.json"))

        agent = store.add_agent(AgentConfig(
            id="A1", name="helper", prompt="Be helpful", primary_model="gpt-4o-mini"
        ))
        thread = store.create_thread(default_agent_id=agent.id)

        await store.add_messages_to_thread(thread.id, [Message.user("Hi")])
        history = await store.get_messages_by_thread_id(thread.id)
    """

    def __init__(self, storage_path: Path | None = None):
        """
        Args:
            storage_path: JSON file to persist to (memory only when None)
        """
        self.storage_path = storage_path

        self._threads: dict[str, ThreadDetails] = {}
        self._agents: dict[str, AgentConfig] = {}
        self._tools: dict[str, ToolRecord] = {}
        self._messages: dict[str, list[Message]] = {}

        self._lock = asyncio.Lock()

        if storage_path is not None:
            self._load()

        logger.debug(
            "Thread store ready",
            {"threads": len(self._threads), "agents": len(self._agents), "tools": len(self._tools)}
        )

    # ---- persistence -------------------------------------------------

    def _load(self) -> None:
        if not self.storage_path.exists():
            return

        try:
            with open(self.storage_path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not load store from {self.storage_path}: {e}") from e

        for item in data.get("threads", []):
            thread = ThreadDetails.from_dict(item)
            self._threads[thread.id] = thread
        for item in data.get("agents", []):
            agent = AgentConfig.from_dict(item)
            self._agents[agent.id] = agent
        for item in data.get("tools", []):
            tool = ToolRecord.from_dict(item)
            self._tools[tool.id] = tool
        for thread_id, messages in data.get("messages", {}).items():
            self._messages[thread_id] = [Message.from_dict(m) for m in messages]

        logger.info(f"Loaded store from {self.storage_path}")

    def _snapshot(self) -> dict:
        return {
            "threads": [t.to_dict() for t in self._threads.values()],
            "agents": [a.to_dict() for a in self._agents.values()],
            "tools": [t.to_dict() for t in self._tools.values()],
            "messages": {
                thread_id: [m.to_dict() for m in messages]
                for thread_id, messages in self._messages.items()
            },
        }

    def _save_sync(self, snapshot: dict) -> None:
        if self.storage_path is None:
            return

        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.storage_path.with_suffix(".tmp")
            with open(tmp_path, "w") as f:
                json.dump(snapshot, f, indent=2)
            tmp_path.replace(self.storage_path)
        except (OSError, TypeError) as e:
            raise PersistenceError(f"Could not save store to {self.storage_path}: {e}") from e

    def save(self) -> None:
        """Write the store to disk (no-op without a storage path)."""
        self._save_sync(self._snapshot())

    # ---- turn collaborator contract ----------------------------------

    async def get_thread_details_by_id(self, thread_id: str) -> ThreadDetails | None:
        return self._threads.get(thread_id)

    async def get_agent_by_name(self, name: str) -> AgentConfig | None:
        for agent in self._agents.values():
            if agent.name == name:
                return agent
        return None

    async def get_agent_by_id(self, agent_id: str) -> AgentConfig | None:
        return self._agents.get(agent_id)

    async def get_agent_tools(self, agent_id: str) -> list[ToolRecord]:
        """
        Get the declared tool records attached to an agent, in attachment order.

        Raises:
            NotFoundError: If the agent does not exist
            ConfigurationError: If the agent references an unknown tool
        """
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError(f"Agent '{agent_id}' not found")

        records = []
        for tool_id in agent.tool_ids:
            record = self._tools.get(tool_id)
            if record is None:
                raise ConfigurationError(f"Agent '{agent.name}' references unknown tool '{tool_id}'")
            records.append(record)
        return records

    async def get_messages_by_thread_id(self, thread_id: str) -> list[Message]:
        """Full message log of a thread, oldest first (a copy)."""
        return list(self._messages.get(thread_id, []))

    async def add_messages_to_thread(self, thread_id: str, messages: list[Message]) -> None:
        """
        Append messages to a thread's log in the given order.

        Raises:
            PersistenceError: If the thread does not exist or the store
                cannot be saved (the append is rolled back)
        """
        async with self._lock:
            if thread_id not in self._threads:
                raise PersistenceError(f"Cannot append to unknown thread '{thread_id}'")

            log = self._messages.setdefault(thread_id, [])
            previous_length = len(log)
            log.extend(messages)

            try:
                await asyncio.to_thread(self._save_sync, self._snapshot())
            except PersistenceError:
                del log[previous_length:]
                raise

        logger.debug(f"Appended {len(messages)} messages to thread {thread_id}")

    # ---- administration ----------------------------------------------

    def create_thread(
        self,
        default_agent_id: str | None = None,
        title: str | None = None,
        thread_id: str | None = None
    ) -> ThreadDetails:
        """Create a thread and save the store."""
        thread = ThreadDetails(
            id=thread_id or str(uuid.uuid4()),
            default_agent_id=default_agent_id,
            title=title,
        )
        self._threads[thread.id] = thread
        self._messages.setdefault(thread.id, [])
        self.save()
        logger.info(f"Created thread {thread.id}")
        return thread

    def add_agent(self, agent: AgentConfig) -> AgentConfig:
        """Add or replace an agent and save the store."""
        self._agents[agent.id] = agent
        self.save()
        logger.info(f"Saved agent {agent.name}", {"id": agent.id})
        return agent

    def add_tool(self, record: ToolRecord) -> ToolRecord:
        """Add or replace a declared tool and save the store."""
        self._tools[record.id] = record
        self.save()
        logger.info(f"Saved tool {record.name}", {"id": record.id})
        return record

    def list_knowledge_bases(self) -> list[KnowledgeBase]:
        """Every knowledge base attached to any agent, once per name."""
        seen: dict[str, KnowledgeBase] = {}
        for agent in self._agents.values():
            for kb in agent.knowledge_bases:
                seen.setdefault(kb.name, kb)
        return list(seen.values())


__all__ = ["ThreadStore", "ThreadDetails", "AgentConfig", "ToolRecord"]

"""
Store Models
============

Records kept by the thread store.

- ThreadDetails: a conversation thread and its default agent
- AgentConfig: prompt, model, knowledge bases and tools of an agent
- ToolRecord: a declared HTTP tool an agent can call

All records serialize to plain dicts for JSON persistence.
"""

from dataclasses import dataclass, field
from typing import Any

from kbagent.knowledge.types import KnowledgeBase


@dataclass
class ThreadDetails:
    """
    A conversation thread.

    Attributes:
        id: Thread ID
        default_agent_id: Agent used when a turn does not name one
        title: Optional human-readable title
    """
    id: str
    default_agent_id: str | None = None
    title: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "default_agent_id": self.default_agent_id,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThreadDetails":
        return cls(
            id=data["id"],
            default_agent_id=data.get("default_agent_id"),
            title=data.get("title"),
        )


@dataclass
class AgentConfig:
    """
    A configured assistant.

    Attributes:
        id: Agent ID
        name: Unique agent name (used to select it per turn)
        prompt: System prompt
        primary_model: Chat model identifier
        knowledge_bases: Knowledge bases the agent can search
        tool_ids: IDs of declared tools attached to the agent
    """
    id: str
    name: str
    prompt: str
    primary_model: str
    knowledge_bases: list[KnowledgeBase] = field(default_factory=list)
    tool_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "prompt": self.prompt,
            "primary_model": self.primary_model,
            "knowledge_bases": [kb.to_dict() for kb in self.knowledge_bases],
            "tool_ids": list(self.tool_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AgentConfig":
        return cls(
            id=data["id"],
            name=data["name"],
            prompt=data.get("prompt", ""),
            primary_model=data["primary_model"],
            knowledge_bases=[KnowledgeBase.from_dict(kb) for kb in data.get("knowledge_bases", [])],
            tool_ids=list(data.get("tool_ids", [])),
        )


@dataclass
class ToolRecord:
    """
    A declared tool backed by an HTTP endpoint.

    Attributes:
        id: Tool ID
        name: Name the model calls the tool by
        description: What the tool does (shown to the model)
        parameters: JSON Schema for the parameters
        endpoint: URL called with the validated parameters
        method: HTTP method
        headers: Extra request headers
    """
    id: str
    name: str
    description: str
    endpoint: str
    parameters: dict[str, Any] = field(default_factory=dict)
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "endpoint": self.endpoint,
            "method": self.method,
            "headers": self.headers,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ToolRecord":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            endpoint=data["endpoint"],
            parameters=data.get("parameters") or {},
            method=data.get("method", "POST"),
            headers=data.get("headers") or {},
        )

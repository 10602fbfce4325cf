"""
Message Types
=============

The messages that flow through a turn: the system instruction, the user's
input, assistant replies (optionally requesting tool calls) and tool results.

All roles share one dataclass so a thread log is a plain ``list[Message]``.
``UserMessage`` and ``OutputMessage`` are aliases that document intent in
signatures: the turn's input and the answer the model settled on.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

Role = Literal["system", "user", "assistant", "tool"]


@dataclass
class ToolCall:
    """
    A tool call requested by the model.

    Attributes:
        id: The tool call ID (for matching results)
        name: The tool name
        arguments: Raw JSON arguments exactly as the model produced them
    """
    id: str
    name: str
    arguments: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}

    @classmethod
    def from_dict(cls, data: dict) -> "ToolCall":
        return cls(id=data["id"], name=data["name"], arguments=data.get("arguments", ""))


@dataclass
class Message:
    """
    A single message in a thread.

    Attributes:
        role: "system", "user", "assistant" or "tool"
        content: The message text (None for assistant messages that only call tools)
        tool_calls: Tool calls requested by an assistant message
        tool_call_id: For tool results, the call being answered
        name: For tool results, the tool that produced it
        created_at: When the message was created
    """
    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None
    name: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str | None, tool_calls: list[ToolCall] | None = None) -> "Message":
        return cls(role="assistant", content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool_result(cls, tool_call_id: str, name: str, content: str) -> "Message":
        return cls(role="tool", content=content, tool_call_id=tool_call_id, name=name)

    def to_openai_message(self) -> dict[str, Any]:
        """Format for the OpenAI chat completions API."""
        message: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        if self.role == "tool":
            message["tool_call_id"] = self.tool_call_id
        return message

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "role": self.role,
            "content": self.content,
            "tool_calls": [call.to_dict() for call in self.tool_calls],
            "tool_call_id": self.tool_call_id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        created_at = data.get("created_at")
        return cls(
            role=data["role"],
            content=data.get("content"),
            tool_calls=[ToolCall.from_dict(c) for c in data.get("tool_calls", [])],
            tool_call_id=data.get("tool_call_id"),
            name=data.get("name"),
            created_at=(
                datetime.fromisoformat(created_at)
                if created_at
                else datetime.now(timezone.utc)
            ),
        )


UserMessage = Message
OutputMessage = Message

"""
Inference
=========

The model side of a turn.

An inference engine takes a model name, the assembled context window and
the available tools, runs the model (including any tool calls it makes)
and returns the final assistant message. Every message it produces along
the way, including the final one, is reported through ``on_message`` in
order before ``infer`` returns.

Engines:
- openai_engine.OpenAIInference: OpenAI chat completions with a tool loop
- mock.MockInference: scripted replies for tests and offline runs
"""

from typing import TYPE_CHECKING, Callable, Protocol, Sequence

from kbagent.inference.types import Message, OutputMessage, Role, ToolCall, UserMessage

if TYPE_CHECKING:
    from kbagent.tools import Tool

OnMessage = Callable[[Message], None]


class InferenceEngine(Protocol):
    async def infer(
        self,
        model: str,
        messages: list[Message],
        tools: "Sequence[Tool] | None",
        on_message: OnMessage,
    ) -> Message:
        ...


__all__ = [
    "InferenceEngine",
    "OnMessage",
    "Message",
    "UserMessage",
    "OutputMessage",
    "ToolCall",
    "Role",
]

"""Mock inference engine for testing without API calls."""

from typing import Sequence

from kbagent.agent.tools_executor import ToolExecutor
from kbagent.inference import OnMessage
from kbagent.inference.types import Message
from kbagent.tools import Tool


class MockInference:
    """Plays back scripted assistant replies.

    Replies are consumed in order across calls. A reply that requests tool
    calls has them executed for real against the tools passed to ``infer``,
    then the next reply is played. Once the script runs out every reply is
    ``"Mock response"``.

    Usage:
        mock = MockInference([
            Message.assistant(None, [ToolCall("c1", "search-knowledge-base-docs", '{"query": "keys"}')]),
            "Keys rotate every 90 days.",
        ])
        answer = await mock.infer(model="gpt-4o-mini", messages=[...], tools=tools, on_message=log.append)
        mock.call_log[0]["tools"]  # ["search-knowledge-base-docs"]
    """

    def __init__(self, replies: Sequence[Message | str] | None = None) -> None:
        self.replies = [
            Message.assistant(reply) if isinstance(reply, str) else reply
            for reply in replies or []
        ]
        self.call_log: list[dict] = []

    def _next_reply(self) -> Message:
        if self.replies:
            return self.replies.pop(0)
        return Message.assistant("Mock response")

    async def infer(
        self,
        model: str,
        messages: list[Message],
        tools: Sequence[Tool] | None,
        on_message: OnMessage,
    ) -> Message:
        self.call_log.append({
            "model": model,
            "messages": list(messages),
            "tools": None if tools is None else [tool.name for tool in tools],
        })

        executor = ToolExecutor(tools)
        while True:
            reply = self._next_reply()
            on_message(reply)
            if not reply.tool_calls:
                return reply
            for result in await executor.execute_all(reply.tool_calls):
                on_message(result)

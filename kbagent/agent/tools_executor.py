"""
Tool Executor
=============

Handles the execution of tools called by the model.

The executor:
1. Parses tool calls from model responses
2. Finds the tool each call names
3. Runs it through ``Tool.call`` (which turns failures into error text)
4. Wraps each result as a ``tool`` message for the next model call

Tool Execution Loop:
    1. Model responds with tool calls
    2. Executor runs each tool
    3. Results are sent back to the model
    4. Model continues with results (may call more tools)
    5. Repeat until the model produces a final answer

Tool names are not unique: when several tools share a name, a call goes to
the first one in the list.
"""

from typing import Any, Sequence

from kbagent.inference.types import Message, ToolCall
from kbagent.tools import Tool, format_error
from kbagent.utils.logger import Logger

logger = Logger("ToolExecutor")


class ToolExecutor:
    """
    Executes tool calls against a fixed tool list.

    Example:
        executor = ToolExecutor(tools)

        tool_calls = executor.parse_tool_calls(response.choices[0].message)
        results = await executor.execute_all(tool_calls)

        for result in results:
            messages.append(result.to_openai_message())
    """

    def __init__(self, tools: Sequence[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            # First tool with a given name wins
            self._tools.setdefault(tool.name, tool)

    def parse_tool_calls(self, message: Any) -> list[ToolCall]:
        """
        Parse tool calls from an OpenAI chat completion message.

        Arguments stay as raw JSON text; each tool validates its own payload.
        """
        if not getattr(message, "tool_calls", None):
            return []

        tool_calls = [
            ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "")
            for tc in message.tool_calls
        ]

        logger.debug(f"Parsed {len(tool_calls)} tool calls")
        return tool_calls

    async def execute_one(self, tool_call: ToolCall) -> Message:
        """
        Execute a single tool call.

        Returns:
            The ``tool`` message holding the result (or error text)
        """
        logger.info(f"Executing tool: {tool_call.name}")

        tool = self._tools.get(tool_call.name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {tool_call.name}")
            content = format_error(f"Tool '{tool_call.name}' not found")
        else:
            content = await tool.call(tool_call.arguments)

        return Message.tool_result(
            tool_call_id=tool_call.id,
            name=tool_call.name,
            content=content
        )

    async def execute_all(self, tool_calls: list[ToolCall]) -> list[Message]:
        """
        Execute tool calls sequentially, returning results in call order.
        """
        results = []
        for tool_call in tool_calls:
            results.append(await self.execute_one(tool_call))
        return results

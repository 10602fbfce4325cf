"""
OpenAI Inference
================

Runs a model over a context window using OpenAI chat completions.

Tool Loop:
    Context Window
         │
         ▼
    Chat Completion with Tools
         │
         ▼
    ┌─── Has Tool Calls? ───┐
    │                       │
    Yes                     No
    │                       │
    ▼                       ▼
    Execute Tools      Return Final Message
    │
    ▼
    Add Results to Messages
    │
    └──── loop (bounded by max_iterations)

Every assistant message and every tool result is reported through
``on_message`` as soon as it exists, so the caller can record the full
exchange in order.
"""

from typing import Sequence

from openai import AsyncOpenAI, OpenAIError

from kbagent.agent.tools_executor import ToolExecutor
from kbagent.errors import UpstreamError
from kbagent.inference import OnMessage
from kbagent.inference.types import Message
from kbagent.tools import Tool
from kbagent.utils.logger import Logger

logger = Logger("OpenAIInference")


def to_openai_messages(messages: list[Message]) -> list[dict]:
    """
    Format a context window for the chat completions API.

    The window may start partway through an earlier tool exchange. Tool
    results whose call is not in the window are dropped, because the API
    rejects a ``tool`` message without a preceding ``tool_calls`` entry.
    """
    requested: set[str] = set()
    formatted = []
    for message in messages:
        if message.role == "tool" and message.tool_call_id not in requested:
            logger.debug(f"Dropping tool result {message.tool_call_id} without its call")
            continue
        requested.update(call.id for call in message.tool_calls)
        formatted.append(message.to_openai_message())
    return formatted


class OpenAIInference:
    """
    Inference engine backed by OpenAI chat completions.

    Example:
        engine = OpenAIInference(api_key="sk-...")

        answer = await engine.infer(
            model="gpt-4o-mini",
            messages=[Message.system("Be brief"), Message.user("Hi")],
            tools=None,
            on_message=produced.append
        )
    """

    # Maximum tool execution iterations to prevent infinite loops
    MAX_TOOL_ITERATIONS = 10

    def __init__(
        self,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
        max_iterations: int = MAX_TOOL_ITERATIONS
    ):
        """
        Args:
            api_key: OpenAI API key (ignored when ``client`` is given)
            client: Optional preconfigured OpenAI client
            max_iterations: Maximum tool rounds per call
        """
        self.openai = client or AsyncOpenAI(api_key=api_key)
        self.max_iterations = max_iterations

    async def _complete(self, model: str, messages: list[dict], functions: list[dict] | None):
        kwargs = {"model": model, "messages": messages}
        if functions:
            kwargs["tools"] = functions
            kwargs["tool_choice"] = "auto"

        try:
            response = await self.openai.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise UpstreamError(f"Chat completion failed ({model}): {e}") from e

        return response.choices[0].message

    async def infer(
        self,
        model: str,
        messages: list[Message],
        tools: Sequence[Tool] | None,
        on_message: OnMessage,
    ) -> Message:
        """
        Run the model until it answers without calling tools.

        Args:
            model: Chat model identifier
            messages: Context window
            tools: Available tools, or None for none
            on_message: Called with every produced message, in order

        Returns:
            The final assistant message

        Raises:
            UpstreamError: If a chat completion request fails
        """
        executor = ToolExecutor(tools)
        functions = [tool.to_openai_function() for tool in tools] if tools else None
        conversation = to_openai_messages(messages)

        iterations = 0
        while True:
            reply = await self._complete(model, conversation, functions)
            tool_calls = executor.parse_tool_calls(reply)

            if tool_calls and iterations >= self.max_iterations:
                # Unanswered tool calls are dropped so the log stays replayable
                logger.warning("Reached max tool iterations")
                tool_calls = []

            assistant = Message.assistant(reply.content, tool_calls)
            on_message(assistant)

            if not tool_calls:
                break

            iterations += 1
            logger.debug(f"Tool iteration {iterations}")

            conversation.append(assistant.to_openai_message())
            for result in await executor.execute_all(tool_calls):
                on_message(result)
                conversation.append(result.to_openai_message())

        logger.info(f"Generated response ({len(assistant.content or '')} chars)")
        return assistant

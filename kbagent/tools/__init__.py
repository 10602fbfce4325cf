"""
Tools
=====

Tools are capabilities the model can call mid-turn. Every tool, whether it
was declared in the store or built in-process for a knowledge base, is the
same ``Tool`` record:

- name: Identifier the model uses to call it
- description: What the tool does (shown to the model)
- parameters: JSON Schema for the parameters
- function: Async callable receiving validated params, returning text
- parse: Turns the model's raw payload (JSON text or dict) into params
- format_error: Renders any failure as text for the model

Calling Convention:
    1. The model requests a tool call with a raw JSON payload
    2. ``Tool.call`` parses and validates the payload
    3. The tool function runs and returns text
    4. Any failure along the way becomes ``format_error(exc)``

``Tool.call`` is the only place where exceptions are turned into strings;
the model sees the error text as the tool result.

This package provides:
- Tool: the capability record
- parse_params: JSON + JSON Schema validation shared by all tools
- make_knowledge_tool / create_tool_from_record: the two variants
- ToolRegistry: builds the per-turn tool list for an agent
"""

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import jsonschema

from kbagent.errors import ParameterValidationError
from kbagent.utils.logger import Logger

logger = Logger("Tools")


def format_error(error: BaseException) -> str:
    """Render any error as tool output for the model."""
    return f"Error: {error}"


def parse_params(raw: str | dict | None, schema: dict) -> dict[str, Any]:
    """
    Parse and validate a raw tool payload against a JSON Schema.

    Accepts either a JSON string (as produced by the model) or an
    already-structured dict. Top-level properties missing from the payload
    are filled from their schema ``default``.

    Args:
        raw: The payload to parse
        schema: JSON Schema of the tool's parameters

    Returns:
        The validated parameters

    Raises:
        ParameterValidationError: If the payload is not valid JSON or
            does not match the schema
    """
    if isinstance(raw, str):
        try:
            params = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            raise ParameterValidationError(f"Invalid JSON parameters: {e}") from e
    elif raw is None:
        params = {}
    else:
        params = raw

    if isinstance(params, dict):
        params = dict(params)
        for key, prop in schema.get("properties", {}).items():
            if key not in params and isinstance(prop, dict) and "default" in prop:
                params[key] = prop["default"]

    try:
        jsonschema.validate(params, schema)
    except jsonschema.ValidationError as e:
        raise ParameterValidationError(f"Schema validation failed: {e.message}") from e

    return params


@dataclass
class Tool:
    """
    A callable capability exposed to the model.

    Example:
        async def echo(params: dict) -> str:
            return params["text"]

        schema = {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"]
        }

        tool = Tool(
            name="echo",
            description="Repeat the given text",
            parameters=schema,
            function=echo,
            parse=lambda raw: parse_params(raw, schema),
        )

        await tool.call('{"text": "hi"}')   # "hi"
        await tool.call('{"txt": "hi"}')    # "Error: Schema validation failed: ..."
    """
    name: str
    description: str
    parameters: dict
    function: Callable[[dict], Awaitable[str]]
    parse: Callable[[Any], dict]
    format_error: Callable[[BaseException], str] = field(default=format_error)

    def to_openai_function(self) -> dict:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters
            }
        }

    async def call(self, raw: Any) -> str:
        """
        Parse the raw payload, run the tool and return its text output.

        Failures are returned as ``format_error(exc)`` rather than raised.
        """
        try:
            params = self.parse(raw)
            return await self.function(params)
        except Exception as e:
            logger.warning(f"Tool {self.name} failed: {e}")
            return self.format_error(e)


# Imported after Tool is defined; the variants build Tool instances
from kbagent.tools.knowledge import make_knowledge_tool  # noqa: E402
from kbagent.tools.declared import create_tool_from_record  # noqa: E402
from kbagent.tools.registry import ToolRegistry  # noqa: E402

__all__ = [
    "Tool",
    "format_error",
    "parse_params",
    "make_knowledge_tool",
    "create_tool_from_record",
    "ToolRegistry",
]

"""
Declared Tools
==============

Tools defined as records in the thread store. Each record carries a name,
description, JSON Schema for its parameters, and the HTTP endpoint that
implements it.

When the model calls a declared tool:
1. The payload is validated against the record's schema
2. The params are sent as JSON to the record's endpoint
3. The response body is returned to the model as text

HTTP Notes:
- Uses httpx for async HTTP requests
- GET requests send params as query string, other methods as JSON body
- Responses with status >= 400 raise UpstreamError
"""

import httpx

from kbagent.errors import UpstreamError
from kbagent.store.models import ToolRecord
from kbagent.tools import Tool, format_error, parse_params
from kbagent.utils.logger import Logger

logger = Logger("DeclaredTool")

DEFAULT_TIMEOUT_SECONDS = 30.0


def create_tool_from_record(
    record: ToolRecord,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS
) -> Tool:
    """
    Build a Tool from a stored tool record.

    Args:
        record: The tool definition from the store
        client: Optional shared HTTP client (a new one is opened per call otherwise)
        timeout: Request timeout in seconds when no client is given

    Returns:
        A Tool that calls the record's endpoint
    """
    schema = record.parameters or {"type": "object", "properties": {}}

    def parse(raw: str | dict) -> dict:
        return parse_params(raw, schema)

    async def send(http: httpx.AsyncClient, params: dict) -> httpx.Response:
        method = record.method.upper()
        if method == "GET":
            return await http.request(method, record.endpoint, params=params, headers=record.headers)
        return await http.request(method, record.endpoint, json=params, headers=record.headers)

    async def invoke(params: dict) -> str:
        logger.info(f"Calling {record.name}: {record.method.upper()} {record.endpoint}")

        try:
            if client is not None:
                response = await send(client, params)
            else:
                async with httpx.AsyncClient(timeout=timeout) as http:
                    response = await send(http, params)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Tool '{record.name}' request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Tool endpoint error: {response.status_code} - {response.text}")
            raise UpstreamError(
                f"Tool '{record.name}' returned HTTP {response.status_code}"
            )

        return response.text

    return Tool(
        name=record.name,
        description=record.description,
        parameters=schema,
        function=invoke,
        parse=parse,
        format_error=format_error,
    )

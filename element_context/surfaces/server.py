"""MCP server wiring for the tool and resource surfaces."""

from __future__ import annotations

from typing import Any, Iterable

import mcp.server.stdio
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents

from ..errors import ElementContextError
from ..logging_utils import get_logger
from .resources import ResourceSurface
from .tools import ToolSurface


class ToolCallError(ElementContextError):
    """Raised inside the MCP handler so the SDK reports ``isError``."""


def build_mcp_server(
    tools: ToolSurface,
    resources: ResourceSurface,
    *,
    name: str,
    version: str,
) -> Server:
    server: Server = Server(name, version=version)
    log = get_logger("mcp")

    @server.list_resources()
    async def _list_resources() -> list[types.Resource]:
        return [
            types.Resource(
                uri=item.uri,
                name=item.name,
                description=item.description,
                mimeType=item.mime_type,
            )
            for item in resources.list_resources()
        ]

    @server.read_resource()
    async def _read_resource(uri: Any) -> Iterable[ReadResourceContents]:
        content = resources.read(str(uri))
        body: str | bytes = content.blob if content.blob is not None else (content.text or "")
        return [ReadResourceContents(content=body, mime_type=content.mime_type)]

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return [
            types.Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema)
            for spec in tools.specs
        ]

    @server.call_tool()
    async def _call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        result = tools.call(name, arguments or {})
        if result.is_error:
            log.info("Tool {} failed: {}", name, result.text)
            raise ToolCallError(result.text)
        return [types.TextContent(type="text", text=result.text)]

    return server


async def serve_stdio(server: Server) -> None:
    """Serve ``server`` on stdin/stdout until the client disconnects."""

    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())

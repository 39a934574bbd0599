"""
MCP stdio server.

Exposes the dispatcher's tools over the Model Context Protocol:

    tools/list  → one Tool per registered DiscordTool, schema from its arguments model
    tools/call  → ToolDispatcher.dispatch(); a failed call becomes an MCP error
                  result whose text is the normalized message

serve() owns the process lifecycle: connect to Discord first (fatal if that
fails), then serve MCP requests on stdin/stdout until the client disconnects.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from guildkeeper import __version__
from guildkeeper.config.logging import get_logger
from guildkeeper.config.settings import Settings
from guildkeeper.dispatch import ToolDispatcher
from guildkeeper.gateway.session import DiscordSession

logger = get_logger(__name__)


class ToolCallFailed(Exception):
    """Raised inside the call_tool handler so the SDK marks the result isError."""


def list_mcp_tools(dispatcher: ToolDispatcher) -> list[types.Tool]:
    return [
        types.Tool(
            name=tool["name"],
            description=tool["description"],
            inputSchema=tool["input_schema"],
        )
        for tool in dispatcher.list_tools()
    ]


async def call_mcp_tool(
    dispatcher: ToolDispatcher, name: str, arguments: dict[str, Any] | None
) -> list[types.TextContent]:
    """
    Run a tool call and convert the result to MCP content.

    Raises:
        ToolCallFailed: If the dispatch failed; carries the normalized message
    """
    result = await dispatcher.dispatch(name, arguments)
    if result.is_error:
        raise ToolCallFailed(result.text)
    return [types.TextContent(type="text", text=result.text)]


def create_server(dispatcher: ToolDispatcher, name: str = "discord") -> Server:
    """Build an MCP server bound to a dispatcher."""
    server = Server(name, version=__version__)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list_mcp_tools(dispatcher)

    # Argument validation belongs to the dispatcher so every violation is reported
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        return await call_mcp_tool(dispatcher, name, arguments)

    return server


async def serve(settings: Settings) -> None:
    """
    Connect to Discord and serve MCP over stdio until the client disconnects.

    Raises:
        StartupError: If the token is missing or the connection fails
    """
    async with AsyncExitStack() as stack:
        session = await stack.enter_async_context(DiscordSession(settings.discord))
        dispatcher = ToolDispatcher(session.gateway, settings.server)
        server = create_server(dispatcher, settings.server.name)

        read_stream, write_stream = await stack.enter_async_context(stdio_server())
        logger.info(f"Discord MCP server running on stdio ({len(dispatcher.tool_names)} tools)")
        await server.run(read_stream, write_stream, server.create_initialization_options())

    logger.info("MCP client disconnected; shutting down")

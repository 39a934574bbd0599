"""
Tool Layer.

One DiscordTool subclass per MCP tool. ALL_TOOLS is the registry the
dispatcher builds from; tool_catalogue() lists them without a connection.
"""

from typing import Any

from guildkeeper.tools.base import DiscordTool, ToolContext
from guildkeeper.tools.messages import ReadMessagesTool, ReadMultipleChannelsTool, SendMessageTool
from guildkeeper.tools.roles import (
    AssignRoleTool,
    CreateRoleTool,
    DeleteRoleTool,
    GetRoleMemberCountTool,
    ListRolesTool,
    RemoveRoleTool,
    UpdateRoleTool,
)
from guildkeeper.tools.servers import (
    CreateChannelTool,
    GetMemberCountTool,
    ListChannelsTool,
    ListServersTool,
)

ALL_TOOLS: list[type[DiscordTool]] = [
    SendMessageTool,
    ReadMessagesTool,
    ListChannelsTool,
    ListServersTool,
    CreateChannelTool,
    ReadMultipleChannelsTool,
    ListRolesTool,
    AssignRoleTool,
    RemoveRoleTool,
    CreateRoleTool,
    DeleteRoleTool,
    UpdateRoleTool,
    GetMemberCountTool,
    GetRoleMemberCountTool,
]


def tool_catalogue() -> list[dict[str, Any]]:
    """Schemas for every registered tool, in registration order."""
    return [tool.schema() for tool in ALL_TOOLS]


__all__ = ["ALL_TOOLS", "DiscordTool", "ToolContext", "tool_catalogue"]

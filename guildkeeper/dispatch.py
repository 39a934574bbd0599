"""
ToolDispatcher: routes tool calls and owns the error boundary.

    dispatch(name, raw_args)
        → look up tool (UnknownToolError)
        → validate arguments (ArgumentValidationError)
        → resolve entities, call the gateway (NotFound/Ambiguous/Conflict/Gateway errors)
        → ToolResult

No exception escapes dispatch(): every failure is logged and converted into
a ToolResult with is_error=True and a single normalized message. A failed
call never affects the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from guildkeeper.config.logging import get_logger
from guildkeeper.config.settings import ServerSettings
from guildkeeper.errors import ErrorKind, ToolError, UnknownToolError, normalize_error
from guildkeeper.gateway.base import Gateway
from guildkeeper.resolvers import EntityResolver
from guildkeeper.tools import ALL_TOOLS, DiscordTool, ToolContext

logger = get_logger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of one tool call.

    Attributes:
        text: Success payload, or the normalized error message
        is_error: True if the call failed
        error_kind: Taxonomy tag of the failure (None on success or for
            unexpected exceptions)
    """

    text: str
    is_error: bool = False
    error_kind: ErrorKind | None = None


class ToolDispatcher:
    """
    Dispatches tool calls against a gateway.

    Args:
        gateway: Remote-state gateway (DiscordGateway in production)
        settings: MCP server settings (fan-out width, audit reason)
        tools: Tool classes to register (default: ALL_TOOLS)
    """

    def __init__(
        self,
        gateway: Gateway,
        settings: ServerSettings | None = None,
        tools: list[type[DiscordTool]] | None = None,
    ):
        context = ToolContext(
            gateway=gateway,
            resolver=EntityResolver(gateway),
            settings=settings or ServerSettings(),
        )
        self._tools: dict[str, DiscordTool] = {
            tool_cls.name: tool_cls(context) for tool_cls in (tools or ALL_TOOLS)
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[dict[str, Any]]:
        """Return the name, description and input schema of every tool."""
        return [tool.schema() for tool in self._tools.values()]

    async def dispatch(self, name: str, arguments: Mapping[str, Any] | None) -> ToolResult:
        """
        Run one tool call.

        Args:
            name: Tool name, e.g. "send-message"
            arguments: Raw arguments as received from the client

        Returns:
            ToolResult; failures are reported through it, never raised
        """
        logger.debug(f"Dispatching {name} with {arguments!r}")
        try:
            tool = self._tools.get(name)
            if tool is None:
                raise UnknownToolError(f"Unknown tool: {name}")
            text = await tool(arguments)
        except ToolError as e:
            logger.info(f"Tool {name} failed ({e.kind}): {e.message}")
            return ToolResult(text=normalize_error(e), is_error=True, error_kind=e.kind)
        except Exception as e:
            logger.error(f"Unexpected error in tool {name}: {e}", exc_info=True)
            return ToolResult(text=normalize_error(e), is_error=True)

        return ToolResult(text=text)

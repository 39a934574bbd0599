"""
Base class for Discord tools.

A tool couples an argument schema with an async handler. Tools are
constructed once per dispatcher with a shared ToolContext (gateway, resolvers,
settings) and invoked with raw, unvalidated arguments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

from guildkeeper.config.settings import ServerSettings
from guildkeeper.gateway.base import Gateway
from guildkeeper.resolvers import EntityResolver
from guildkeeper.tools.schemas import ToolArguments, input_schema, validate_arguments


@dataclass(frozen=True)
class ToolContext:
    """Everything a tool handler needs, injected by the dispatcher."""

    gateway: Gateway
    resolver: EntityResolver
    settings: ServerSettings


class DiscordTool(ABC):
    """
    Abstract base class for tools.

    Subclasses set ``name``, ``description`` and ``arguments`` and implement
    run(). Validation happens in __call__, so run() always receives a
    validated arguments instance.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    arguments: ClassVar[type[ToolArguments]]

    def __init__(self, context: ToolContext):
        self.context = context

    @property
    def gateway(self) -> Gateway:
        return self.context.gateway

    @property
    def resolver(self) -> EntityResolver:
        return self.context.resolver

    @classmethod
    def schema(cls) -> dict[str, Any]:
        """
        Describe this tool for listing.

        Example:
            {
                "name": "send-message",
                "description": "Send a message to a Discord channel",
                "input_schema": {
                    "type": "object",
                    "properties": {"channel": {...}, "message": {...}},
                    "required": ["channel", "message"]
                }
            }
        """
        return {
            "name": cls.name,
            "description": cls.description,
            "input_schema": input_schema(cls.arguments),
        }

    @abstractmethod
    async def run(self, args: Any) -> str:
        """
        Execute the tool.

        Args:
            args: Validated instance of ``self.arguments``

        Returns:
            Text payload for the caller

        Raises:
            ToolError: On any expected failure
        """

    async def __call__(self, raw_arguments: Mapping[str, Any] | None) -> str:
        args = validate_arguments(self.arguments, raw_arguments)
        return await self.run(args)

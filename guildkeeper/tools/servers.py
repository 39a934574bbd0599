"""Server-level tools: listing servers and channels, creating channels, member counts."""

from __future__ import annotations

import json

from guildkeeper.config.logging import get_logger
from guildkeeper.errors import ConflictError
from guildkeeper.resolvers.base import names_match
from guildkeeper.tools.base import DiscordTool
from guildkeeper.tools.schemas import (
    CreateChannelArgs,
    GetMemberCountArgs,
    ListChannelsArgs,
    ListServersArgs,
)

logger = get_logger(__name__)


class ListServersTool(DiscordTool):
    name = "list-servers"
    description = "List all servers the bot is connected to"
    arguments = ListServersArgs

    async def run(self, args: ListServersArgs) -> str:
        servers = [
            {"id": server.id, "name": server.name}
            for server in self.gateway.cached_servers()
        ]
        return f"Bot is connected to the following servers:\n{json.dumps(servers, indent=2)}"


class ListChannelsTool(DiscordTool):
    name = "list-channels"
    description = "List all text channels in a specific server"
    arguments = ListChannelsArgs

    async def run(self, args: ListChannelsArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        channels = [
            {"id": channel.id, "name": channel.name}
            for channel in self.resolver.channels.text_channels(server)
        ]
        return f'Text channels in server "{server.name}":\n{json.dumps(channels, indent=2)}'


class CreateChannelTool(DiscordTool):
    name = "create-channel"
    description = "Create a new text channel in a specific server"
    arguments = CreateChannelArgs

    async def run(self, args: CreateChannelArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)

        existing = [
            channel
            for channel in self.resolver.channels.text_channels(server)
            if names_match(channel.name, args.channel_name)
        ]
        if existing:
            raise ConflictError(
                f'A text channel named "{args.channel_name}" already exists in server "{server.name}".'
            )

        channel = await self.gateway.create_text_channel(server.id, args.channel_name)
        return (
            f"Successfully created text channel #{channel.name} (ID: {channel.id}) "
            f'in server "{server.name}".'
        )


class GetMemberCountTool(DiscordTool):
    name = "get-member-count"
    description = "Get the total number of members in a specific server"
    arguments = GetMemberCountArgs

    async def run(self, args: GetMemberCountArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        count = await self.gateway.member_count(server.id)
        return f'Server "{server.name}" has {count} members.'

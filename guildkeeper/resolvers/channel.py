"""Text channel resolution, scoped to one server."""

from guildkeeper.errors import AmbiguousError, NotFoundError
from guildkeeper.gateway.base import Gateway
from guildkeeper.gateway.models import Channel, ChannelKind, Server
from guildkeeper.resolvers.base import mention_id, names_match, pick_one
from guildkeeper.resolvers.guild import GuildResolver


class ChannelResolver:
    """
    Resolves a text channel by ID, mention or name within a server.

    An ID is only accepted if it points at a text channel of the resolved
    server; a valid ID from another server is rejected rather than followed.
    Names match case-insensitively with or without the leading ``#``.
    Non-text channels are never returned.
    """

    def __init__(self, gateway: Gateway, guilds: GuildResolver):
        self._gateway = gateway
        self._guilds = guilds

    async def resolve(self, identifier: str, server_identifier: str | None = None) -> Channel:
        server = await self._guilds.resolve(server_identifier)
        return await self.resolve_in(server, identifier)

    def text_channels(self, server: Server) -> list[Channel]:
        """All cached text channels of a server."""
        return [
            channel
            for channel in self._gateway.cached_channels(server.id)
            if channel.kind is ChannelKind.TEXT
        ]

    async def resolve_in(self, server: Server, identifier: str) -> Channel:
        """
        Raises:
            NotFoundError: No text channel in this server matches
            AmbiguousError: Several text channels share the name
        """
        identifier = identifier.strip()

        fetched = await self._gateway.fetch_channel(mention_id(identifier) or identifier)
        if fetched is not None:
            if fetched.kind is ChannelKind.TEXT and fetched.server_id == server.id:
                return fetched
            raise NotFoundError(
                f'Channel "{identifier}" is not a text channel or not found in server "{server.name}"'
            )

        bare = identifier[1:] if identifier.startswith("#") else identifier
        channels = self.text_channels(server)

        return pick_one(
            [c for c in channels if names_match(c.name, identifier) or names_match(c.name, bare)],
            not_found=lambda: NotFoundError(
                f'Channel "{identifier}" not found in server "{server.name}". '
                "Available channels: " + ", ".join(f'"#{c.name}"' for c in channels),
                available=[c.mention_name for c in channels],
            ),
            ambiguous=lambda matches: AmbiguousError(
                f'Multiple channels found with name "{identifier}" in server "{server.name}": '
                + ", ".join(f"#{c.name} ({c.id})" for c in matches)
                + ". Please specify the channel ID.",
                candidates=[(c.mention_name, c.id) for c in matches],
            ),
        )

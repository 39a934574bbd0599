"""
Identifier Resolution Layer.

Turns human-typed identifiers ("general", "#general", "Moderator",
"someone#1234", "<@123>") into concrete entities from the gateway, scoped to a
server that is always resolved first.
"""

from guildkeeper.gateway.base import Gateway
from guildkeeper.resolvers.base import LookupResult, TwoPhaseLookup, pick_one
from guildkeeper.resolvers.channel import ChannelResolver
from guildkeeper.resolvers.guild import GuildResolver
from guildkeeper.resolvers.member import MemberResolver
from guildkeeper.resolvers.role import RoleResolver


class EntityResolver:
    """
    Bundles the four resolvers over one gateway.

    Example::

        resolver = EntityResolver(gateway)
        server = await resolver.guilds.resolve("My Server")
        channel = await resolver.channels.resolve_in(server, "#general")
    """

    def __init__(self, gateway: Gateway):
        self.guilds = GuildResolver(gateway)
        self.channels = ChannelResolver(gateway, self.guilds)
        self.roles = RoleResolver(gateway, self.guilds)
        self.members = MemberResolver(gateway, self.guilds)


__all__ = [
    "ChannelResolver",
    "EntityResolver",
    "GuildResolver",
    "LookupResult",
    "MemberResolver",
    "RoleResolver",
    "TwoPhaseLookup",
    "pick_one",
]

"""
Gateway Layer.

The boundary between GuildKeeper and Discord: entity snapshots, the abstract
Gateway contract, its discord.py implementation, and the session that owns the
live connection.
"""

from guildkeeper.gateway.base import Gateway
from guildkeeper.gateway.discord_gateway import DiscordGateway
from guildkeeper.gateway.models import Channel, ChannelKind, Member, Message, Role, Server
from guildkeeper.gateway.session import DiscordSession, StartupError

__all__ = [
    "Channel",
    "ChannelKind",
    "DiscordGateway",
    "DiscordSession",
    "Gateway",
    "Member",
    "Message",
    "Role",
    "Server",
    "StartupError",
]

"""
discord.py-backed Gateway implementation.

Wraps a connected discord.Client. Cached reads go through the client's
in-memory state (kept current by gateway events); fetches and refreshes hit
the REST API. discord.py exceptions never leak out of this module: unknown IDs
become None, everything else becomes a GatewayError.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import discord

from guildkeeper.config.logging import get_logger
from guildkeeper.errors import GatewayError
from guildkeeper.gateway.base import Gateway
from guildkeeper.gateway.models import Channel, ChannelKind, Member, Message, Role, Server

logger = get_logger(__name__)


def _snowflake(value: str) -> int | None:
    """Parse a Discord ID, or return None if the string can't be one."""
    value = value.strip()
    if not value.isdigit():
        return None
    return int(value)


@asynccontextmanager
async def _translate_errors(action: str) -> AsyncIterator[None]:
    try:
        yield
    except discord.HTTPException as e:
        raise GatewayError(f"Failed to {action}: {e}", cause=e) from e


def _to_server(guild: discord.Guild) -> Server:
    return Server(id=str(guild.id), name=guild.name, member_count=guild.member_count)


def _channel_kind(channel: Any) -> ChannelKind:
    if isinstance(channel, discord.TextChannel):
        return ChannelKind.TEXT
    if isinstance(channel, discord.VoiceChannel):
        return ChannelKind.VOICE
    if isinstance(channel, discord.CategoryChannel):
        return ChannelKind.CATEGORY
    return ChannelKind.OTHER


def _to_channel(channel: Any) -> Channel:
    guild = getattr(channel, "guild", None)
    return Channel(
        id=str(channel.id),
        name=getattr(channel, "name", None) or "",
        server_id=str(guild.id) if guild is not None else None,
        kind=_channel_kind(channel),
    )


def _to_role(role: discord.Role) -> Role:
    return Role(
        id=str(role.id),
        name=role.name,
        color=str(role.colour),
        position=role.position,
        permissions=[name for name, granted in role.permissions if granted],
        mentionable=role.mentionable,
    )


def _to_member(member: discord.Member) -> Member:
    return Member(
        id=str(member.id),
        tag=str(member),
        username=member.name,
        nickname=member.nick,
        role_ids=frozenset(str(role.id) for role in member.roles),
    )


def _to_message(message: discord.Message) -> Message:
    return Message(
        id=str(message.id),
        author_tag=str(message.author),
        content=message.content,
        created_at=message.created_at,
    )


class DiscordGateway(Gateway):
    """
    Gateway over a live discord.py client.

    The client must already be logged in and ready; see DiscordSession for
    the lifecycle.

    Args:
        client: Connected discord.py client with the guilds and members intents
    """

    def __init__(self, client: discord.Client):
        self._client = client

    # ------------------------------------------------------------------
    # Internal lookups
    # ------------------------------------------------------------------

    async def _guild(self, server_id: str) -> discord.Guild:
        gid = _snowflake(server_id)
        if gid is None:
            raise GatewayError(f"Invalid server ID: {server_id}")
        guild = self._client.get_guild(gid)
        if guild is not None:
            return guild
        async with _translate_errors(f"fetch server {server_id}"):
            return await self._client.fetch_guild(gid)

    async def _role(self, guild: discord.Guild, role_id: str) -> discord.Role:
        rid = _snowflake(role_id)
        role = guild.get_role(rid) if rid is not None else None
        if role is None:
            async with _translate_errors(f"fetch roles of server {guild.id}"):
                role = next((r for r in await guild.fetch_roles() if r.id == rid), None)
        if role is None:
            raise GatewayError(f"Role {role_id} no longer exists in server \"{guild.name}\"")
        return role

    async def _member(self, guild: discord.Guild, member_id: str) -> discord.Member:
        mid = _snowflake(member_id)
        if mid is None:
            raise GatewayError(f"Invalid user ID: {member_id}")
        member = guild.get_member(mid)
        if member is None:
            async with _translate_errors(f"fetch member {member_id}"):
                member = await guild.fetch_member(mid)
        return member

    async def _channel(self, channel_id: str) -> Any:
        cid = _snowflake(channel_id)
        if cid is None:
            raise GatewayError(f"Invalid channel ID: {channel_id}")
        channel = self._client.get_channel(cid)
        if channel is None:
            async with _translate_errors(f"fetch channel {channel_id}"):
                channel = await self._client.fetch_channel(cid)
        return channel

    # ------------------------------------------------------------------
    # Servers
    # ------------------------------------------------------------------

    def cached_servers(self) -> list[Server]:
        return [_to_server(guild) for guild in self._client.guilds]

    async def fetch_server(self, server_id: str) -> Server | None:
        gid = _snowflake(server_id)
        if gid is None:
            return None
        guild = self._client.get_guild(gid)
        if guild is None:
            try:
                guild = await self._client.fetch_guild(gid)
            except (discord.NotFound, discord.Forbidden):
                logger.debug(f"Server ID {server_id} not visible to the bot")
                return None
            except discord.HTTPException as e:
                raise GatewayError(f"Failed to fetch server {server_id}: {e}", cause=e) from e
        return _to_server(guild)

    async def member_count(self, server_id: str) -> int:
        members = await self.refresh_members(server_id)
        guild = await self._guild(server_id)
        return guild.member_count if guild.member_count is not None else len(members)

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    async def fetch_channel(self, channel_id: str) -> Channel | None:
        cid = _snowflake(channel_id)
        if cid is None:
            return None
        channel = self._client.get_channel(cid)
        if channel is None:
            try:
                channel = await self._client.fetch_channel(cid)
            except (discord.NotFound, discord.Forbidden, discord.InvalidData):
                logger.debug(f"Channel ID {channel_id} not visible to the bot")
                return None
            except discord.HTTPException as e:
                raise GatewayError(f"Failed to fetch channel {channel_id}: {e}", cause=e) from e
        return _to_channel(channel)

    def cached_channels(self, server_id: str) -> list[Channel]:
        gid = _snowflake(server_id)
        guild = self._client.get_guild(gid) if gid is not None else None
        if guild is None:
            return []
        return [_to_channel(channel) for channel in guild.channels]

    async def create_text_channel(self, server_id: str, name: str) -> Channel:
        guild = await self._guild(server_id)
        async with _translate_errors(f"create channel \"{name}\""):
            channel = await guild.create_text_channel(name)
        logger.info(f"Created text channel #{channel.name} ({channel.id}) in {guild.name}")
        return _to_channel(channel)

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def cached_roles(self, server_id: str) -> list[Role]:
        gid = _snowflake(server_id)
        guild = self._client.get_guild(gid) if gid is not None else None
        if guild is None:
            return []
        return [_to_role(role) for role in guild.roles]

    async def refresh_roles(self, server_id: str) -> list[Role]:
        guild = await self._guild(server_id)
        async with _translate_errors(f"fetch roles of server \"{guild.name}\""):
            roles = await guild.fetch_roles()
        return [_to_role(role) for role in roles]

    async def create_role(
        self,
        server_id: str,
        name: str,
        color: str | None = None,
        permissions: list[str] | None = None,
        mentionable: bool = False,
        reason: str | None = None,
    ) -> Role:
        guild = await self._guild(server_id)
        kwargs: dict[str, Any] = {"name": name, "mentionable": mentionable, "reason": reason}
        if color is not None:
            kwargs["colour"] = discord.Colour.from_str(color)
        if permissions is not None:
            kwargs["permissions"] = discord.Permissions(**{flag: True for flag in permissions})
        async with _translate_errors(f"create role \"{name}\""):
            role = await guild.create_role(**kwargs)
        logger.info(f"Created role {role.name} ({role.id}) in {guild.name}")
        return _to_role(role)

    async def edit_role(
        self,
        server_id: str,
        role_id: str,
        *,
        name: str | None = None,
        color: str | None = None,
        permissions: list[str] | None = None,
        mentionable: bool | None = None,
        reason: str | None = None,
    ) -> Role:
        guild = await self._guild(server_id)
        role = await self._role(guild, role_id)
        kwargs: dict[str, Any] = {"reason": reason}
        if name is not None:
            kwargs["name"] = name
        if color is not None:
            kwargs["colour"] = discord.Colour.from_str(color)
        if permissions is not None:
            kwargs["permissions"] = discord.Permissions(**{flag: True for flag in permissions})
        if mentionable is not None:
            kwargs["mentionable"] = mentionable
        async with _translate_errors(f"update role \"{role.name}\""):
            updated = await role.edit(**kwargs)
        return _to_role(updated or role)

    async def delete_role(self, server_id: str, role_id: str, reason: str | None = None) -> None:
        guild = await self._guild(server_id)
        role = await self._role(guild, role_id)
        async with _translate_errors(f"delete role \"{role.name}\""):
            await role.delete(reason=reason)
        logger.info(f"Deleted role {role.name} ({role.id}) from {guild.name}")

    def permission_names(self) -> list[str]:
        return sorted(discord.Permissions.VALID_FLAGS)

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def fetch_member(self, server_id: str, member_id: str) -> Member | None:
        mid = _snowflake(member_id)
        if mid is None:
            return None
        guild = await self._guild(server_id)
        member = guild.get_member(mid)
        if member is None:
            try:
                member = await guild.fetch_member(mid)
            except (discord.NotFound, discord.Forbidden):
                return None
            except discord.HTTPException as e:
                raise GatewayError(f"Failed to fetch member {member_id}: {e}", cause=e) from e
        return _to_member(member)

    def cached_members(self, server_id: str) -> list[Member]:
        gid = _snowflake(server_id)
        guild = self._client.get_guild(gid) if gid is not None else None
        if guild is None:
            return []
        return [_to_member(member) for member in guild.members]

    async def refresh_members(self, server_id: str) -> list[Member]:
        guild = await self._guild(server_id)
        async with _translate_errors(f"fetch members of server \"{guild.name}\""):
            if self._client.get_guild(guild.id) is not None:
                members = await guild.chunk(cache=True)
            else:
                members = [member async for member in guild.fetch_members(limit=None)]
        return [_to_member(member) for member in members]

    async def add_member_role(
        self, server_id: str, member_id: str, role_id: str, reason: str | None = None
    ) -> None:
        guild = await self._guild(server_id)
        member = await self._member(guild, member_id)
        async with _translate_errors(f"assign role {role_id} to {member}"):
            await member.add_roles(discord.Object(id=int(role_id)), reason=reason)

    async def remove_member_role(
        self, server_id: str, member_id: str, role_id: str, reason: str | None = None
    ) -> None:
        guild = await self._guild(server_id)
        member = await self._member(guild, member_id)
        async with _translate_errors(f"remove role {role_id} from {member}"):
            await member.remove_roles(discord.Object(id=int(role_id)), reason=reason)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def send_message(self, channel_id: str, content: str) -> Message:
        channel = await self._channel(channel_id)
        async with _translate_errors(f"send message to #{getattr(channel, 'name', channel_id)}"):
            message = await channel.send(content)
        return _to_message(message)

    async def fetch_messages(self, channel_id: str, limit: int) -> list[Message]:
        channel = await self._channel(channel_id)
        async with _translate_errors(f"fetch messages from #{getattr(channel, 'name', channel_id)}"):
            messages = [message async for message in channel.history(limit=limit)]
        return [_to_message(message) for message in messages]

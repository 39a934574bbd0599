"""
Shared fixtures: an in-memory Gateway.

FakeGateway keeps two views of each server, like the real platform does:
a "remote" state (what Discord knows) and a cache (what the bot has seen).
Entities can be added to the remote state only, so tests can exercise the
cache-miss → refresh → recheck path. Every mutation is recorded in `calls`.
"""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from guildkeeper.config.settings import ServerSettings
from guildkeeper.dispatch import ToolDispatcher
from guildkeeper.errors import GatewayError
from guildkeeper.gateway.base import Gateway
from guildkeeper.gateway.models import Channel, ChannelKind, Member, Message, Role, Server

PERMISSION_NAMES = [
    "administrator",
    "manage_roles",
    "manage_messages",
    "read_message_history",
    "send_messages",
    "send_tts_messages",
    "view_channel",
]

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeGateway(Gateway):
    def __init__(self):
        self._ids = count(1000)
        self.servers: dict[str, Server] = {}
        self.channels: dict[str, Channel] = {}
        self.remote_roles: dict[str, dict[str, Role]] = {}
        self.cached_role_map: dict[str, dict[str, Role]] = {}
        self.remote_members: dict[str, dict[str, Member]] = {}
        self.cached_member_map: dict[str, dict[str, Member]] = {}
        self.messages: dict[str, list[Message]] = {}
        self.failing_channels: dict[str, str] = {}
        self.fail_role_refresh = False
        self.calls: list[tuple] = []

    def _next_id(self) -> str:
        return str(next(self._ids))

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def add_server(self, name: str, id: str | None = None) -> Server:
        server = Server(id=id or self._next_id(), name=name)
        self.servers[server.id] = server
        self.remote_roles[server.id] = {}
        self.cached_role_map[server.id] = {}
        self.remote_members[server.id] = {}
        self.cached_member_map[server.id] = {}
        return server

    def add_channel(
        self, server: Server, name: str, kind: ChannelKind = ChannelKind.TEXT, id: str | None = None
    ) -> Channel:
        channel = Channel(id=id or self._next_id(), name=name, server_id=server.id, kind=kind)
        self.channels[channel.id] = channel
        self.messages[channel.id] = []
        return channel

    def add_role(self, server: Server, name: str, cached: bool = True, id: str | None = None, **fields) -> Role:
        role = Role(id=id or self._next_id(), name=name, **fields)
        self.remote_roles[server.id][role.id] = role
        if cached:
            self.cached_role_map[server.id][role.id] = role
        return role

    def add_member(
        self,
        server: Server,
        username: str,
        tag: str | None = None,
        nickname: str | None = None,
        roles: tuple[Role, ...] = (),
        cached: bool = True,
        id: str | None = None,
    ) -> Member:
        member = Member(
            id=id or self._next_id(),
            tag=tag or username,
            username=username,
            nickname=nickname,
            role_ids=frozenset(role.id for role in roles),
        )
        self.remote_members[server.id][member.id] = member
        if cached:
            self.cached_member_map[server.id][member.id] = member
        return member

    def add_message(self, channel: Channel, content: str, minutes: int = 0, author: str = "author") -> Message:
        message = Message(
            id=self._next_id(),
            author_tag=author,
            content=content,
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )
        self.messages[channel.id].append(message)
        return message

    def fail_channel(self, channel: Channel, message: str = "Missing Access") -> None:
        self.failing_channels[channel.id] = message

    def member(self, server: Server, member_id: str) -> Member:
        """Current remote state of a member."""
        return self.remote_members[server.id][member_id]

    def mutations(self) -> list[str]:
        return [call[0] for call in self.calls]

    # ------------------------------------------------------------------
    # Gateway: servers and channels
    # ------------------------------------------------------------------

    def cached_servers(self) -> list[Server]:
        return list(self.servers.values())

    async def fetch_server(self, server_id: str) -> Server | None:
        return self.servers.get(server_id) if server_id.isdigit() else None

    async def member_count(self, server_id: str) -> int:
        return len(await self.refresh_members(server_id))

    async def fetch_channel(self, channel_id: str) -> Channel | None:
        return self.channels.get(channel_id) if channel_id.isdigit() else None

    def cached_channels(self, server_id: str) -> list[Channel]:
        return [channel for channel in self.channels.values() if channel.server_id == server_id]

    async def create_text_channel(self, server_id: str, name: str) -> Channel:
        self.calls.append(("create_text_channel", server_id, name))
        return self.add_channel(self.servers[server_id], name)

    # ------------------------------------------------------------------
    # Gateway: roles
    # ------------------------------------------------------------------

    def cached_roles(self, server_id: str) -> list[Role]:
        return list(self.cached_role_map[server_id].values())

    async def refresh_roles(self, server_id: str) -> list[Role]:
        self.calls.append(("refresh_roles", server_id))
        if self.fail_role_refresh:
            raise GatewayError("Missing Permissions")
        self.cached_role_map[server_id] = dict(self.remote_roles[server_id])
        return self.cached_roles(server_id)

    async def create_role(
        self,
        server_id: str,
        name: str,
        color: str | None = None,
        permissions: list[str] | None = None,
        mentionable: bool = False,
        reason: str | None = None,
    ) -> Role:
        self.calls.append(("create_role", server_id, name, color, permissions, mentionable, reason))
        return self.add_role(
            self.servers[server_id],
            name,
            color=color or "#000000",
            permissions=permissions or [],
            mentionable=mentionable,
        )

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
        self.calls.append(("edit_role", server_id, role_id, name, color, permissions, mentionable, reason))
        changes = {
            key: value
            for key, value in {
                "name": name,
                "color": color,
                "permissions": permissions,
                "mentionable": mentionable,
            }.items()
            if value is not None
        }
        role = self.remote_roles[server_id][role_id].model_copy(update=changes)
        self.remote_roles[server_id][role_id] = role
        self.cached_role_map[server_id][role_id] = role
        return role

    async def delete_role(self, server_id: str, role_id: str, reason: str | None = None) -> None:
        self.calls.append(("delete_role", server_id, role_id, reason))
        del self.remote_roles[server_id][role_id]
        self.cached_role_map[server_id].pop(role_id, None)

    def permission_names(self) -> list[str]:
        return list(PERMISSION_NAMES)

    # ------------------------------------------------------------------
    # Gateway: members
    # ------------------------------------------------------------------

    async def fetch_member(self, server_id: str, member_id: str) -> Member | None:
        if not member_id.isdigit():
            return None
        return self.remote_members[server_id].get(member_id)

    def cached_members(self, server_id: str) -> list[Member]:
        return list(self.cached_member_map[server_id].values())

    async def refresh_members(self, server_id: str) -> list[Member]:
        self.calls.append(("refresh_members", server_id))
        self.cached_member_map[server_id] = dict(self.remote_members[server_id])
        return self.cached_members(server_id)

    def _set_roles(self, server_id: str, member_id: str, role_ids: frozenset[str]) -> None:
        member = self.remote_members[server_id][member_id].model_copy(update={"role_ids": role_ids})
        self.remote_members[server_id][member_id] = member
        if member_id in self.cached_member_map[server_id]:
            self.cached_member_map[server_id][member_id] = member

    async def add_member_role(
        self, server_id: str, member_id: str, role_id: str, reason: str | None = None
    ) -> None:
        self.calls.append(("add_member_role", server_id, member_id, role_id, reason))
        current = self.remote_members[server_id][member_id].role_ids
        self._set_roles(server_id, member_id, current | {role_id})

    async def remove_member_role(
        self, server_id: str, member_id: str, role_id: str, reason: str | None = None
    ) -> None:
        self.calls.append(("remove_member_role", server_id, member_id, role_id, reason))
        current = self.remote_members[server_id][member_id].role_ids
        self._set_roles(server_id, member_id, current - {role_id})

    # ------------------------------------------------------------------
    # Gateway: messages
    # ------------------------------------------------------------------

    async def send_message(self, channel_id: str, content: str) -> Message:
        self.calls.append(("send_message", channel_id, content))
        if channel_id in self.failing_channels:
            raise GatewayError(self.failing_channels[channel_id])
        minutes = len(self.messages[channel_id])
        return self.add_message(self.channels[channel_id], content, minutes=minutes, author="bot#0001")

    async def fetch_messages(self, channel_id: str, limit: int) -> list[Message]:
        if channel_id in self.failing_channels:
            raise GatewayError(self.failing_channels[channel_id])
        newest_first = sorted(self.messages[channel_id], key=lambda m: m.created_at, reverse=True)
        return newest_first[:limit]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def dispatcher(gateway: FakeGateway) -> ToolDispatcher:
    return ToolDispatcher(
        gateway,
        ServerSettings(max_concurrent_reads=2, audit_reason="test reason"),
    )

"""
Base class for the remote-state gateway.

The gateway is the only thing in GuildKeeper that talks to Discord. It exposes
an eventually consistent, read-through view of guilds, channels, roles and
members, plus the handful of mutations the tools need. Resolvers and tool
handlers depend on this interface only, so tests can substitute an in-memory
implementation.
"""

from abc import ABC, abstractmethod

from guildkeeper.gateway.models import Channel, Member, Message, Role, Server


class Gateway(ABC):
    """
    Abstract remote-state gateway.

    Conventions shared by all implementations:

    - ``fetch_*`` methods look an entity up by exact ID and return None when
      the ID is malformed or unknown. Any other remote failure raises
      GatewayError.
    - ``cached_*`` methods never touch the network and may be stale.
    - ``refresh_*`` methods re-read a whole collection from the platform and
      return the fresh snapshot.
    """

    # ------------------------------------------------------------------
    # Servers
    # ------------------------------------------------------------------

    @abstractmethod
    def cached_servers(self) -> list[Server]:
        """Return every server the bot has joined, from cache."""

    @abstractmethod
    async def fetch_server(self, server_id: str) -> Server | None:
        """Look a server up by ID."""

    @abstractmethod
    async def member_count(self, server_id: str) -> int:
        """
        Return the server's total member count.

        Implementations refresh the member list first so the count is current.
        """

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch_channel(self, channel_id: str) -> Channel | None:
        """Look a channel up by ID, in any server and of any kind."""

    @abstractmethod
    def cached_channels(self, server_id: str) -> list[Channel]:
        """Return all cached channels of a server, of every kind."""

    @abstractmethod
    async def create_text_channel(self, server_id: str, name: str) -> Channel:
        """Create a text channel and return it."""

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    @abstractmethod
    def cached_roles(self, server_id: str) -> list[Role]:
        """Return the server's cached roles."""

    @abstractmethod
    async def refresh_roles(self, server_id: str) -> list[Role]:
        """Re-read all roles of a server from the platform."""

    @abstractmethod
    async def create_role(
        self,
        server_id: str,
        name: str,
        color: str | None = None,
        permissions: list[str] | None = None,
        mentionable: bool = False,
        reason: str | None = None,
    ) -> Role:
        """
        Create a role.

        Args:
            server_id: Target server
            name: Role name
            color: Hex color (#RRGGBB); None keeps the platform default
            permissions: Canonical permission flag names to grant
            mentionable: Whether members can @mention the role
            reason: Audit log reason
        """

    @abstractmethod
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
        """Apply the given (non-None) changes to a role and return the result."""

    @abstractmethod
    async def delete_role(self, server_id: str, role_id: str, reason: str | None = None) -> None:
        """Delete a role."""

    @abstractmethod
    def permission_names(self) -> list[str]:
        """Return the canonical permission flag names the platform accepts."""

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch_member(self, server_id: str, member_id: str) -> Member | None:
        """Look a member of the server up by user ID."""

    @abstractmethod
    def cached_members(self, server_id: str) -> list[Member]:
        """Return the server's cached members (may be partial)."""

    @abstractmethod
    async def refresh_members(self, server_id: str) -> list[Member]:
        """Re-read the full member list of a server."""

    @abstractmethod
    async def add_member_role(
        self, server_id: str, member_id: str, role_id: str, reason: str | None = None
    ) -> None:
        """Grant a role to a member."""

    @abstractmethod
    async def remove_member_role(
        self, server_id: str, member_id: str, role_id: str, reason: str | None = None
    ) -> None:
        """Revoke a role from a member."""

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    @abstractmethod
    async def send_message(self, channel_id: str, content: str) -> Message:
        """Post a message to a text channel."""

    @abstractmethod
    async def fetch_messages(self, channel_id: str, limit: int) -> list[Message]:
        """Return up to `limit` most recent messages, newest first."""

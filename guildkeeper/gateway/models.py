"""
Snapshots of Discord entities as seen by the resolution layer.

These are read-only views produced by a Gateway. The platform owns the real
objects; GuildKeeper only holds IDs and the fields it needs for matching and
formatting. IDs are Discord snowflakes rendered as decimal strings.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ChannelKind(StrEnum):
    """Channel types. Only TEXT is addressable by the tools."""

    TEXT = "text"
    VOICE = "voice"
    CATEGORY = "category"
    OTHER = "other"


class Server(BaseModel):
    """A guild the bot has joined."""

    id: str
    name: str
    member_count: int | None = Field(None, ge=0)

    model_config = ConfigDict(frozen=True)


class Channel(BaseModel):
    """A channel scoped to exactly one server."""

    id: str
    name: str
    server_id: str | None = Field(None, description="Owning guild ID (None for DMs)")
    kind: ChannelKind = ChannelKind.TEXT

    model_config = ConfigDict(frozen=True)

    @property
    def mention_name(self) -> str:
        return f"#{self.name}"


class Role(BaseModel):
    """A named permission grant within a server."""

    id: str
    name: str
    color: str = Field(default="#000000", description="Hex color, e.g. #ff0000")
    position: int = 0
    permissions: list[str] = Field(default_factory=list)
    mentionable: bool = False

    model_config = ConfigDict(frozen=True)


class Member(BaseModel):
    """A user's membership record in one server."""

    id: str
    tag: str = Field(description="username#discriminator, or username for migrated accounts")
    username: str
    nickname: str | None = None
    role_ids: frozenset[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    def has_role(self, role_id: str) -> bool:
        return role_id in self.role_ids


class Message(BaseModel):
    """A message read from a text channel."""

    id: str
    author_tag: str
    content: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)

"""
Argument schemas for every tool.

Each tool declares a pydantic model. The same model produces the JSON Schema
advertised to MCP clients and validates incoming arguments before any
resolver or Discord call runs. Wire names are camelCase (``channelName``,
``limitPerChannel``); attributes are snake_case.
"""

from __future__ import annotations

from typing import Annotated, Any, Mapping, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    model_validator,
)
from pydantic_core import PydanticCustomError

from guildkeeper.errors import ArgumentValidationError

SERVER_DESCRIPTION = "Server name or ID (optional if bot is only in one server)"
CHANNEL_DESCRIPTION = 'Channel name (e.g., "general") or ID'
USER_DESCRIPTION = "User name#discriminator, user ID, or user mention"


def _normalize_hex(value: str) -> str:
    return value if value.startswith("#") else f"#{value}"


ServerIdentifier = Annotated[str | None, Field(description=SERVER_DESCRIPTION)]
HexColor = Annotated[
    str,
    StringConstraints(pattern=r"^#?[0-9a-fA-F]{6}$"),
    AfterValidator(_normalize_hex),
]


class ToolArguments(BaseModel):
    """Base for tool argument models. Unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Servers and channels
# ---------------------------------------------------------------------------

class ListServersArgs(ToolArguments):
    pass


class ListChannelsArgs(ToolArguments):
    server: ServerIdentifier = None


class CreateChannelArgs(ToolArguments):
    server: ServerIdentifier = None
    channel_name: str = Field(
        alias="channelName", min_length=1, max_length=100, description="Name for the new text channel"
    )


class GetMemberCountArgs(ToolArguments):
    server: ServerIdentifier = None


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

class SendMessageArgs(ToolArguments):
    server: ServerIdentifier = None
    channel: str = Field(min_length=1, description=CHANNEL_DESCRIPTION)
    message: str = Field(min_length=1, max_length=2000, description="Message content to send")


class ReadMessagesArgs(ToolArguments):
    server: ServerIdentifier = None
    channel: str = Field(min_length=1, description=CHANNEL_DESCRIPTION)
    limit: int = Field(default=50, ge=1, le=100, description="Number of messages to fetch (max 100)")


class ReadMultipleChannelsArgs(ToolArguments):
    server: ServerIdentifier = None
    channels: list[str] | None = Field(
        default=None,
        description="List of channel names or IDs (optional, defaults to all text channels)",
    )
    limit_per_channel: int = Field(
        default=10,
        ge=1,
        le=50,
        alias="limitPerChannel",
        description="Max messages per channel (default 10, max 50)",
    )


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

class ListRolesArgs(ToolArguments):
    server: ServerIdentifier = None


class MemberRoleArgs(ToolArguments):
    server: ServerIdentifier = None
    user: str = Field(min_length=1, description=USER_DESCRIPTION)
    role: str = Field(min_length=1, description="Role name or ID")


class AssignRoleArgs(MemberRoleArgs):
    pass


class RemoveRoleArgs(MemberRoleArgs):
    pass


class CreateRoleArgs(ToolArguments):
    server: ServerIdentifier = None
    role_name: str = Field(alias="roleName", min_length=1, max_length=100, description="Name for the new role")
    color: HexColor | None = Field(default=None, description="Hex color code (e.g., #FF0000)")
    permissions: list[str] | None = Field(
        default=None,
        description='List of permission names (e.g., ["send_messages", "manage_messages"])',
    )
    mentionable: bool = Field(default=False, description="Whether the role should be mentionable")


class DeleteRoleArgs(ToolArguments):
    server: ServerIdentifier = None
    role: str = Field(min_length=1, description="Role name or ID to delete")


class UpdateRoleArgs(ToolArguments):
    server: ServerIdentifier = None
    role: str = Field(min_length=1, description="Role name or ID to update")
    new_name: str | None = Field(
        default=None, alias="newName", min_length=1, max_length=100, description="New name for the role"
    )
    new_color: HexColor | None = Field(
        default=None, alias="newColor", description="New hex color code for the role"
    )
    new_permissions: list[str] | None = Field(
        default=None,
        alias="newPermissions",
        description="New list of permission names (replaces existing)",
    )
    new_mentionable: bool | None = Field(
        default=None, alias="newMentionable", description="New mentionable status"
    )

    @model_validator(mode="after")
    def _require_an_update(self) -> UpdateRoleArgs:
        if (
            self.new_name is None
            and self.new_color is None
            and self.new_permissions is None
            and self.new_mentionable is None
        ):
            raise PydanticCustomError("no_updates", "No update parameters provided for the role.")
        return self


class GetRoleMemberCountArgs(ToolArguments):
    server: ServerIdentifier = None
    role: str = Field(min_length=1, description="Role name or ID")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

A = TypeVar("A", bound=ToolArguments)


def input_schema(model: type[ToolArguments]) -> dict[str, Any]:
    """JSON Schema for a tool's arguments, keyed by wire (alias) names."""
    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("properties", {})
    schema.setdefault("required", [])
    return schema


def validate_arguments(model: type[A], raw: Mapping[str, Any] | None) -> A:
    """
    Validate raw tool arguments against a model.

    Raises:
        ArgumentValidationError: Listing every violated field, not just the first
    """
    try:
        return model.model_validate(raw if raw is not None else {})
    except ValidationError as e:
        issues = [
            (".".join(str(part) for part in error["loc"]), error["msg"])
            for error in e.errors()
        ]
        raise ArgumentValidationError(issues, cause=e) from e

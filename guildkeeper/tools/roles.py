"""
Role tools: listing, assignment, creation, update, deletion and member counts.

Mutations are guarded: assigning a role the member already holds, removing
one they lack, or creating/renaming to a name already in use fails with a
ConflictError before any call reaches Discord.
"""

from __future__ import annotations

import json

from guildkeeper.config.logging import get_logger
from guildkeeper.errors import ArgumentValidationError, ConflictError
from guildkeeper.gateway.models import Role, Server
from guildkeeper.resolvers.base import names_match
from guildkeeper.tools.base import DiscordTool
from guildkeeper.tools.schemas import (
    AssignRoleArgs,
    CreateRoleArgs,
    DeleteRoleArgs,
    GetRoleMemberCountArgs,
    ListRolesArgs,
    RemoveRoleArgs,
    UpdateRoleArgs,
)

logger = get_logger(__name__)


def _permission_key(name: str) -> str:
    # "SendTTSMessages" and "send_tts_messages" share a key
    return name.replace("_", "").casefold()


def resolve_permissions(names: list[str], valid: list[str], field: str) -> list[str]:
    """
    Map user-supplied permission names to canonical flag names.

    Accepts the canonical snake_case names and their PascalCase spellings.

    Raises:
        ArgumentValidationError: On the first unknown name, listing all valid names
    """
    canonical = {_permission_key(flag): flag for flag in valid}
    resolved = []
    for name in names:
        flag = canonical.get(_permission_key(name))
        if flag is None:
            raise ArgumentValidationError(
                [(field, f"Invalid permission name: {name}. Valid permissions: {', '.join(valid)}")]
            )
        resolved.append(flag)
    return resolved


def _role_summary(role: Role) -> dict:
    return {
        "id": role.id,
        "name": role.name,
        "color": role.color,
        "position": role.position,
        "permissions": role.permissions,
        "mentionable": role.mentionable,
    }


class ListRolesTool(DiscordTool):
    name = "list-roles"
    description = "List all roles in a specific server"
    arguments = ListRolesArgs

    async def run(self, args: ListRolesArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        roles = await self.gateway.refresh_roles(server.id)
        roles = sorted(roles, key=lambda role: role.position, reverse=True)
        summary = [_role_summary(role) for role in roles]
        return f'Roles in server "{server.name}":\n{json.dumps(summary, indent=2)}'


class AssignRoleTool(DiscordTool):
    name = "assign-role"
    description = "Assign a role to a user in a server"
    arguments = AssignRoleArgs

    async def run(self, args: AssignRoleArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        member = await self.resolver.members.resolve_in(server, args.user)
        role = await self.resolver.roles.resolve_in(server, args.role)

        if member.has_role(role.id):
            raise ConflictError(f'User {member.tag} already has the role "{role.name}".')

        await self.gateway.add_member_role(
            server.id, member.id, role.id, reason=self.context.settings.audit_reason
        )
        logger.info(f"Assigned role {role.name} to {member.tag} in {server.name}")
        return f'Successfully assigned role "{role.name}" to user {member.tag} in server "{server.name}".'


class RemoveRoleTool(DiscordTool):
    name = "remove-role"
    description = "Remove a role from a user in a server"
    arguments = RemoveRoleArgs

    async def run(self, args: RemoveRoleArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        member = await self.resolver.members.resolve_in(server, args.user)
        role = await self.resolver.roles.resolve_in(server, args.role)

        if not member.has_role(role.id):
            raise ConflictError(f'User {member.tag} does not have the role "{role.name}".')

        await self.gateway.remove_member_role(
            server.id, member.id, role.id, reason=self.context.settings.audit_reason
        )
        logger.info(f"Removed role {role.name} from {member.tag} in {server.name}")
        return f'Successfully removed role "{role.name}" from user {member.tag} in server "{server.name}".'


class CreateRoleTool(DiscordTool):
    name = "create-role"
    description = "Create a new role in a server"
    arguments = CreateRoleArgs

    async def run(self, args: CreateRoleArgs) -> str:
        permissions = None
        if args.permissions is not None:
            permissions = resolve_permissions(
                args.permissions, self.gateway.permission_names(), "permissions"
            )

        server = await self.resolver.guilds.resolve(args.server)
        if any(names_match(role.name, args.role_name) for role in self.gateway.cached_roles(server.id)):
            raise ConflictError(f'A role named "{args.role_name}" already exists in server "{server.name}".')

        role = await self.gateway.create_role(
            server.id,
            args.role_name,
            color=args.color,
            permissions=permissions,
            mentionable=args.mentionable,
            reason=self.context.settings.audit_reason,
        )
        return f'Successfully created role "{role.name}" (ID: {role.id}) in server "{server.name}".'


class DeleteRoleTool(DiscordTool):
    name = "delete-role"
    description = "Delete a role from a server"
    arguments = DeleteRoleArgs

    async def run(self, args: DeleteRoleArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        role = await self.resolver.roles.resolve_in(server, args.role)
        await self.gateway.delete_role(server.id, role.id, reason=self.context.settings.audit_reason)
        return f'Successfully deleted role "{role.name}" (ID: {role.id}) from server "{server.name}".'


class UpdateRoleTool(DiscordTool):
    name = "update-role"
    description = "Update an existing role in a server"
    arguments = UpdateRoleArgs

    def _check_rename(self, server: Server, role: Role, new_name: str) -> None:
        clash = [
            other
            for other in self.gateway.cached_roles(server.id)
            if other.id != role.id and names_match(other.name, new_name)
        ]
        if clash:
            raise ConflictError(
                f'Cannot rename role "{role.name}": a role named "{new_name}" already exists '
                f'in server "{server.name}".'
            )

    async def run(self, args: UpdateRoleArgs) -> str:
        permissions = None
        if args.new_permissions is not None:
            permissions = resolve_permissions(
                args.new_permissions, self.gateway.permission_names(), "newPermissions"
            )

        server = await self.resolver.guilds.resolve(args.server)
        role = await self.resolver.roles.resolve_in(server, args.role)
        if args.new_name is not None:
            self._check_rename(server, role, args.new_name)

        updated = await self.gateway.edit_role(
            server.id,
            role.id,
            name=args.new_name,
            color=args.new_color,
            permissions=permissions,
            mentionable=args.new_mentionable,
            reason=self.context.settings.audit_reason,
        )
        return f'Successfully updated role "{updated.name}" (ID: {updated.id}) in server "{server.name}".'


class GetRoleMemberCountTool(DiscordTool):
    name = "get-role-member-count"
    description = "Get the number of members that have a specific role in a server"
    arguments = GetRoleMemberCountArgs

    async def run(self, args: GetRoleMemberCountArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        role = await self.resolver.roles.resolve_in(server, args.role)
        members = await self.gateway.refresh_members(server.id)
        count = len({member.id for member in members if member.has_role(role.id)})
        return f'There are {count} members with the role "{role.name}" in server "{server.name}".'

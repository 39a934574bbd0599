"""Role resolution, scoped to one server."""

from guildkeeper.errors import AmbiguousError, NotFoundError
from guildkeeper.gateway.base import Gateway
from guildkeeper.gateway.models import Role, Server
from guildkeeper.resolvers.base import TwoPhaseLookup, mention_id, names_match, pick_one
from guildkeeper.resolvers.guild import GuildResolver


class RoleResolver:
    """
    Resolves a role by ID, mention or name within a server.

    The cache is checked first without any network call. Role lists are
    small, so on a miss the whole list is re-fetched once rather than fetching
    the single role.
    """

    def __init__(self, gateway: Gateway, guilds: GuildResolver):
        self._gateway = gateway
        self._guilds = guilds

    async def resolve(self, identifier: str, server_identifier: str | None = None) -> Role:
        server = await self._guilds.resolve(server_identifier)
        return await self.resolve_in(server, identifier)

    async def resolve_in(self, server: Server, identifier: str) -> Role:
        """
        Raises:
            NotFoundError: No role matches, even after a refresh
            AmbiguousError: Several roles share the name
        """
        identifier = identifier.strip()
        role_id = mention_id(identifier) or identifier

        lookup: TwoPhaseLookup[Role] = TwoPhaseLookup(
            cached=lambda: self._gateway.cached_roles(server.id),
            refresh=lambda: self._gateway.refresh_roles(server.id),
            stages=[
                lambda roles: [r for r in roles if r.id == role_id],
                lambda roles: [r for r in roles if names_match(r.name, identifier)],
            ],
            description=f'role "{identifier}" in {server.name}',
        )
        result = await lookup.run()

        return pick_one(
            result.matches,
            not_found=lambda: NotFoundError(
                f'Role "{identifier}" not found in server "{server.name}". '
                "Available roles: " + ", ".join(f'"{r.name}"' for r in result.searched),
                available=[r.name for r in result.searched],
            ),
            ambiguous=lambda matches: AmbiguousError(
                f'Multiple roles found with name "{identifier}" in server "{server.name}": '
                + ", ".join(f"{r.name} ({r.id})" for r in matches)
                + ". Please specify the role ID.",
                candidates=[(r.name, r.id) for r in matches],
            ),
        )

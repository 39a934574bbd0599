"""Guild (server) resolution."""

from guildkeeper.errors import AmbiguousContextError, AmbiguousError, NotFoundError
from guildkeeper.gateway.base import Gateway
from guildkeeper.gateway.models import Server
from guildkeeper.resolvers.base import names_match, pick_one


def _quoted_names(servers: list[Server]) -> str:
    return ", ".join(f'"{server.name}"' for server in servers)


class GuildResolver:
    """
    Resolves a server from an optional name or ID.

    Omitting the identifier is only allowed while the bot is in exactly one
    server. Otherwise the ID is tried first, then an exact case-insensitive
    name match over the joined servers.
    """

    def __init__(self, gateway: Gateway):
        self._gateway = gateway

    async def resolve(self, identifier: str | None = None) -> Server:
        """
        Raises:
            AmbiguousContextError: No identifier and the bot is not in exactly one server
            NotFoundError: No server with that ID or name
            AmbiguousError: Several joined servers share the name
        """
        servers = self._gateway.cached_servers()

        if identifier is None or not identifier.strip():
            if len(servers) == 1:
                return servers[0]
            if not servers:
                raise AmbiguousContextError(
                    "Bot is not in any servers. Invite it to a server first.", available=[]
                )
            raise AmbiguousContextError(
                "Bot is in multiple servers. Please specify server name or ID. "
                f"Available servers: {_quoted_names(servers)}",
                available=[server.name for server in servers],
            )

        identifier = identifier.strip()
        server = await self._gateway.fetch_server(identifier)
        if server is not None:
            return server

        return pick_one(
            [server for server in servers if names_match(server.name, identifier)],
            not_found=lambda: NotFoundError(
                f'Server "{identifier}" not found. Available servers: {_quoted_names(servers)}',
                available=[server.name for server in servers],
            ),
            ambiguous=lambda matches: AmbiguousError(
                f'Multiple servers found with name "{identifier}": '
                + ", ".join(f"{s.name} (ID: {s.id})" for s in matches)
                + ". Please specify the server ID.",
                candidates=[(s.name, s.id) for s in matches],
            ),
        )

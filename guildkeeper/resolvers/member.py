"""Member resolution, scoped to one server."""

import re

from guildkeeper.errors import AmbiguousError, NotFoundError
from guildkeeper.gateway.base import Gateway
from guildkeeper.gateway.models import Member, Server
from guildkeeper.resolvers.base import TwoPhaseLookup, names_match, pick_one
from guildkeeper.resolvers.guild import GuildResolver

_MENTION_DECORATION_RE = re.compile(r"[<@!>]")


class MemberResolver:
    """
    Resolves a member by user ID, mention, tag, nickname or username.

    Order: ID fetch, exact tag, then nickname or username. If nothing
    matches, the full member list is refreshed once and the cache stages are
    repeated (including ID, now against the fresh list).
    """

    def __init__(self, gateway: Gateway, guilds: GuildResolver):
        self._gateway = gateway
        self._guilds = guilds

    async def resolve(self, identifier: str, server_identifier: str | None = None) -> Member:
        server = await self._guilds.resolve(server_identifier)
        return await self.resolve_in(server, identifier)

    async def resolve_in(self, server: Server, identifier: str) -> Member:
        """
        Raises:
            NotFoundError: No member matches, even after a refresh
            AmbiguousError: Several members share the nickname/username
        """
        identifier = identifier.strip()
        member_id = _MENTION_DECORATION_RE.sub("", identifier)

        lookup: TwoPhaseLookup[Member] = TwoPhaseLookup(
            cached=lambda: self._gateway.cached_members(server.id),
            refresh=lambda: self._gateway.refresh_members(server.id),
            probe=lambda: self._gateway.fetch_member(server.id, member_id),
            stages=[
                lambda members: [m for m in members if m.id == member_id],
                lambda members: [m for m in members if names_match(m.tag, identifier)],
                lambda members: [
                    m
                    for m in members
                    if names_match(m.nickname, identifier) or names_match(m.username, identifier)
                ],
            ],
            description=f'user "{identifier}" in {server.name}',
        )
        result = await lookup.run()

        return pick_one(
            result.matches,
            not_found=lambda: NotFoundError(f'User "{identifier}" not found in server "{server.name}".'),
            ambiguous=lambda matches: AmbiguousError(
                f'Multiple users found matching "{identifier}" in server "{server.name}": '
                + ", ".join(f"{m.tag} ({m.id})" for m in matches)
                + ". Please specify the user ID or tag.",
                candidates=[(m.tag, m.id) for m in matches],
            ),
        )

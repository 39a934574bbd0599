"""
DiscordSession: owns the live connection to Discord.

The session is the single process-wide connection, but it is an explicit
object rather than a module global: the MCP server receives it at startup and
hands its gateway to the dispatcher, and tests construct a dispatcher around
a fake gateway instead.

Lifecycle:
- initialize(): log in, open the gateway connection, wait until the client
  has received its guild list (READY)
- gateway: DiscordGateway bound to the connected client
- shutdown(): close the websocket and HTTP session
"""

from __future__ import annotations

import asyncio

import aiohttp
import discord

from guildkeeper.config.logging import get_logger
from guildkeeper.config.settings import DiscordSettings
from guildkeeper.gateway.discord_gateway import DiscordGateway

logger = get_logger(__name__)


class StartupError(RuntimeError):
    """Fatal: the token is missing or the connection could not be established."""


class GuildKeeperClient(discord.Client):
    """discord.py client with the intents the tools rely on."""

    def __init__(self) -> None:
        intents = discord.Intents.default()
        intents.members = True  # Member lookups and role member counts
        intents.message_content = True  # read-messages returns message text
        super().__init__(intents=intents)

    async def on_ready(self) -> None:
        logger.info(f"Logged in as {self.user} (id: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")


class DiscordSession:
    """
    Explicitly owned Discord connection.

    Args:
        settings: Discord settings (token, ready timeout)
        client: Optional pre-built client; defaults to GuildKeeperClient
    """

    def __init__(self, settings: DiscordSettings, client: discord.Client | None = None):
        self._settings = settings
        self._client = client
        self._connect_task: asyncio.Task | None = None
        self._gateway: DiscordGateway | None = None

    @property
    def gateway(self) -> DiscordGateway:
        if self._gateway is None:
            raise RuntimeError("Discord session not initialized")
        return self._gateway

    async def initialize(self) -> None:
        """
        Log in and wait for the gateway to become ready.

        Raises:
            StartupError: If the token is missing, rejected, or the connection
                does not become ready within the configured timeout
        """
        if not self._settings.token:
            raise StartupError("DISCORD_TOKEN environment variable is not set")

        if self._client is None:
            self._client = GuildKeeperClient()

        try:
            await self._client.login(self._settings.token)
        except discord.LoginFailure as e:
            await self._client.close()
            raise StartupError(f"Discord rejected the bot token: {e}") from e
        except discord.HTTPException as e:
            await self._client.close()
            raise StartupError(f"Could not log in to Discord: {e}") from e
        except (OSError, aiohttp.ClientError) as e:
            await self._client.close()
            raise StartupError(f"Could not reach Discord: {e}") from e

        self._connect_task = asyncio.create_task(self._client.connect(reconnect=True))
        ready_task = asyncio.create_task(self._client.wait_until_ready())

        done, _ = await asyncio.wait(
            {self._connect_task, ready_task},
            timeout=self._settings.ready_timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )

        if ready_task not in done:
            ready_task.cancel()
            if self._connect_task in done and self._connect_task.exception() is not None:
                error = self._connect_task.exception()
                await self.shutdown()
                raise StartupError(f"Discord connection failed: {error}") from error
            await self.shutdown()
            raise StartupError(
                f"Discord connection not ready after {self._settings.ready_timeout}s"
            )

        self._gateway = DiscordGateway(self._client)
        logger.info("Discord session ready")

    async def shutdown(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._client is not None and not self._client.is_closed():
            await self._client.close()

        if self._connect_task is not None:
            if not self._connect_task.done():
                self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"Connection task ended with error: {e!r}")
            self._connect_task = None

        self._gateway = None

    async def __aenter__(self) -> DiscordSession:
        await self.initialize()
        return self

    async def __aexit__(self, *_args) -> None:
        await self.shutdown()
        return None

"""
Message tools: send, read one channel, read many channels.

read-multiple-channels fans out over its target channels. Each channel is
resolved and read independently; a failure on one becomes an error entry in
the output instead of failing the whole call. All entries are then merged
newest first, with error entries (which have no timestamp) at the end.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime

from pydantic import BaseModel

from guildkeeper.config.logging import get_logger
from guildkeeper.gateway.models import Channel, Message, Server
from guildkeeper.tools.base import DiscordTool
from guildkeeper.tools.schemas import ReadMessagesArgs, ReadMultipleChannelsArgs, SendMessageArgs

logger = get_logger(__name__)


class MessageRecord(BaseModel):
    """One entry in a read payload: either a message or a per-channel error."""

    channel: str
    server: str
    author: str | None = None
    content: str | None = None
    timestamp: datetime | None = None
    error: str | None = None

    @classmethod
    def from_message(cls, message: Message, channel: Channel, server: Server) -> MessageRecord:
        return cls(
            channel=channel.mention_name,
            server=server.name,
            author=message.author_tag,
            content=message.content,
            timestamp=message.created_at,
        )


def sort_by_recency(records: list[MessageRecord]) -> list[MessageRecord]:
    """Newest first; records without a timestamp keep their order at the end."""
    dated = sorted(
        (record for record in records if record.timestamp is not None),
        key=lambda record: record.timestamp,
        reverse=True,
    )
    undated = [record for record in records if record.timestamp is None]
    return dated + undated


def dump_records(records: list[MessageRecord]) -> str:
    return json.dumps(
        [record.model_dump(mode="json", exclude_none=True) for record in records],
        indent=2,
        ensure_ascii=False,
    )


class SendMessageTool(DiscordTool):
    name = "send-message"
    description = "Send a message to a Discord channel"
    arguments = SendMessageArgs

    async def run(self, args: SendMessageArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        channel = await self.resolver.channels.resolve_in(server, args.channel)
        sent = await self.gateway.send_message(channel.id, args.message)
        return (
            f"Message sent successfully to {channel.mention_name} in {server.name}. "
            f"Message ID: {sent.id}"
        )


class ReadMessagesTool(DiscordTool):
    name = "read-messages"
    description = "Read recent messages from a Discord channel"
    arguments = ReadMessagesArgs

    async def run(self, args: ReadMessagesArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)
        channel = await self.resolver.channels.resolve_in(server, args.channel)
        messages = await self.gateway.fetch_messages(channel.id, args.limit)
        return dump_records([MessageRecord.from_message(m, channel, server) for m in messages])


class ReadMultipleChannelsTool(DiscordTool):
    name = "read-multiple-channels"
    description = "Read recent messages from multiple text channels in a server"
    arguments = ReadMultipleChannelsArgs

    async def _read_channel(
        self,
        server: Server,
        target: Channel | str,
        limit: int,
        semaphore: asyncio.Semaphore,
    ) -> list[MessageRecord]:
        if isinstance(target, Channel):
            label = target.mention_name
        else:
            label = target if target.startswith("#") else f"#{target}"

        async with semaphore:
            try:
                channel = target
                if not isinstance(channel, Channel):
                    channel = await self.resolver.channels.resolve_in(server, target)
                    label = channel.mention_name
                messages = await self.gateway.fetch_messages(channel.id, limit)
            except Exception as e:
                detail = getattr(e, "message", None) or str(e) or type(e).__name__
                logger.warning(f"Error fetching messages from {label} in {server.name}: {detail}")
                return [
                    MessageRecord(
                        channel=label,
                        server=server.name,
                        error=f"Failed to fetch messages: {detail}",
                    )
                ]

        return [MessageRecord.from_message(m, channel, server) for m in messages]

    async def run(self, args: ReadMultipleChannelsArgs) -> str:
        server = await self.resolver.guilds.resolve(args.server)

        targets: list[Channel | str]
        if args.channels:
            targets = list(args.channels)
        else:
            targets = list(self.resolver.channels.text_channels(server))

        if not targets:
            return f'No text channels found or specified in server "{server.name}".'

        semaphore = asyncio.Semaphore(self.context.settings.max_concurrent_reads)
        batches = await asyncio.gather(
            *(self._read_channel(server, target, args.limit_per_channel, semaphore) for target in targets)
        )
        records = sort_by_recency([record for batch in batches for record in batch])

        return (
            f'Fetched messages from {len(targets)} channel(s) in "{server.name}":\n'
            f"{dump_records(records)}"
        )

"""
GuildKeeper - MCP server for Discord server management.

Exposes guild, channel, role and member operations as MCP tools, resolving
loosely typed identifiers ("general", "Moderator", "someone#1234") against the
bot's view of Discord.
"""

__version__ = "0.1.0"

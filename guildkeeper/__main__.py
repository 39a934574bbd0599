"""
GuildKeeper CLI entry point.

Provides command-line interface for running the MCP server and utility commands.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from guildkeeper import __version__
from guildkeeper.config.logging import get_logger, setup_logging
from guildkeeper.config.settings import Settings, load_settings
from guildkeeper.gateway.session import StartupError
from guildkeeper.tools import tool_catalogue


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="guildkeeper",
        description="MCP server exposing Discord server management tools over stdio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"GuildKeeper {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "run",
        help="Connect to Discord and serve MCP requests on stdin/stdout",
    )

    subparsers.add_parser(
        "config",
        help="Show current configuration",
    )

    tools_parser = subparsers.add_parser(
        "tools",
        help="Print the tool catalogue (names, descriptions, input schemas) as JSON",
    )
    tools_parser.add_argument(
        "--names-only",
        action="store_true",
        help="Print one tool name per line instead of the full catalogue",
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    logger.info("\n=== GuildKeeper Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"\nDiscord Token: {'Set' if settings.discord.token else 'Not set'}")
    logger.info(f"Ready Timeout: {settings.discord.ready_timeout}s")
    logger.info(f"\nMCP Server Name: {settings.server.name}")
    logger.info(f"Max Concurrent Reads: {settings.server.max_concurrent_reads}")
    logger.info(f"Audit Reason: {settings.server.audit_reason}")

    return 0


def cmd_tools(args) -> int:
    """Print the tool catalogue to stdout."""
    catalogue = tool_catalogue()
    if args.names_only:
        for tool in catalogue:
            print(tool["name"])
    else:
        print(json.dumps(catalogue, indent=2))
    return 0


def cmd_run(settings: Settings) -> int:
    """Start the MCP server."""
    logger = get_logger(__name__)

    if not settings.discord.token:
        logger.error(
            "Discord bot token not set. Add DISCORD_TOKEN=<your-token> to your environment or .env file."
        )
        return 1

    from guildkeeper.server import serve

    logger.info(f"Starting MCP server {settings.server.name!r}...")
    try:
        asyncio.run(serve(settings))
    except StartupError as e:
        logger.error(f"Fatal error in main(): {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load settings
    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Override log level if specified
    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    # Execute command
    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "run":
        return cmd_run(settings)
    elif args.command == "tools":
        return cmd_tools(args)
    else:
        # Default: show help
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())

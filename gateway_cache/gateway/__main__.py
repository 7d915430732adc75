"""CLI entry point for gateway_cache.gateway.

Usage:
    python -m gateway_cache.gateway status                  # Shard health table
    python -m gateway_cache.gateway plan                    # Shard range for this node
    python -m gateway_cache.gateway replay events.jsonl     # Apply recorded events
    python -m gateway_cache.gateway --verbose status        # Show more details
    python -m gateway_cache.gateway --debug status          # Show debug info
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from gateway_cache.config.settings import get_settings
from gateway_cache.gateway.logger import logger
from gateway_cache.gateway.run import replay_file, show_plan, show_status
from gateway_cache.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gateway-cache",
        description="Discord gateway cache tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gateway-cache status
      Show the health of every shard recorded in Redis

  gateway-cache plan --config /path/to/config.json
      Show which shards this node runs and the identify concurrency

  gateway-cache replay events.jsonl
      Apply recorded gateway packets (one JSON object per line) to the cache
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config.json",
        help="Path to config.json (default: config.json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with third-party library logs",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Optional file to write logs to",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Show shard health")
    commands.add_parser("plan", help="Show this node's shard range")
    replay = commands.add_parser("replay", help="Apply recorded gateway packets")
    replay.add_argument("file", type=str, help="Newline-delimited JSON packets")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.debug:
        log_level = logging.DEBUG
        debug_third_party = True
    elif args.verbose:
        log_level = logging.DEBUG
        debug_third_party = False
    else:
        log_level = logging.INFO
        debug_third_party = False

    setup_logging(
        level=log_level,
        log_file=args.log_file,
        debug_third_party=debug_third_party,
    )

    settings = get_settings(args.config)

    try:
        if args.command == "status":
            asyncio.run(show_status(settings))
        elif args.command == "plan":
            asyncio.run(show_plan(settings))
        elif args.command == "replay":
            stats = asyncio.run(replay_file(settings, args.file))
            if stats.failed:
                sys.exit(2)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise


if __name__ == "__main__":
    main()

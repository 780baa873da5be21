#!/usr/bin/env python3
"""
Management script for the Discord channel mirror.
Provides CLI commands to inspect and validate configuration without connecting.
"""
import argparse
import sys
from typing import List, Optional

from mirrorbot.config import load_settings
from mirrorbot.core import RoutingTable
from mirrorbot.core.exceptions import ConfigurationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discord Channel Mirror Management CLI")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    routes_parser = subparsers.add_parser('routes', help='Print the routing table')
    routes_parser.add_argument('--config', help='Routing configuration file (default: from settings)')

    validate_parser = subparsers.add_parser('validate', help='Validate settings and routing configuration')
    validate_parser.add_argument('--config', help='Routing configuration file (default: from settings)')

    return parser


def handle_routes(args) -> int:
    """Print each source channel and its ordered targets."""
    table = RoutingTable.load(args.config or load_settings().routing_config_path)

    print(f"📋 {len(table)} routes:")
    for source, targets in table.items():
        rendered = ", ".join(str(target) for target in targets) or "(no targets)"
        print(f"   {source} -> {rendered}")
    return 0


def handle_validate(args) -> int:
    """Load settings and routing configuration the same way the bot does."""
    print("🔍 Validating settings...")
    settings = load_settings()
    print(f"✅ Settings valid (log level {settings.effective_log_level})")

    path = args.config or settings.routing_config_path
    print(f"🔍 Validating routing configuration {path}...")
    table = RoutingTable.load(path)

    target_count = sum(len(targets) for _, targets in table.items())
    print(f"✅ Routing configuration valid: {len(table)} sources, {target_count} targets")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == 'routes':
            return handle_routes(args)
        elif args.command == 'validate':
            return handle_validate(args)
        else:
            print(f"Unknown command: {args.command}")
            return 1
    except ConfigurationError as e:
        print(f"❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

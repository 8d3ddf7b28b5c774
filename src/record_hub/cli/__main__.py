"""
Unified CLI entry point for RecordHub.

Usage:
    python -m record_hub.cli <command> [options]

Available commands:
    login   - Check a username/password pair (exit code 0 when accepted)
    feed    - Print the feed of a user, one headline per line
    seed    - Load users and posts from a YAML seed file into a backend

Examples:
    python -m record_hub.cli --backend relational seed seeds/demo.yml
    python -m record_hub.cli login alice --password wonderland
    python -m record_hub.cli --backend key_value_async feed alice
"""

import argparse
import getpass
import sys
from pathlib import Path
from typing import Any, List, Optional

from record_hub.config import get_settings
from record_hub.domain.deferred import Deferred
from record_hub.domain.exceptions import RecordHubError
from record_hub.io.connectors.adapter_factory import SUPPORTED_BACKENDS

RESULT_TIMEOUT_SECONDS = 30.0


def _settle(value: Any) -> Any:
    """Wait for async service results; sync results pass straight through."""
    if isinstance(value, Deferred):
        return value.result(timeout=RESULT_TIMEOUT_SECONDS)
    return value


def _cmd_login(args: argparse.Namespace) -> int:
    from record_hub.bootstrap import build_services

    password = args.password if args.password is not None else getpass.getpass()
    with build_services(backend=args.backend) as services:
        accepted = _settle(services.auth.authenticate(args.username, password))

    print("Login accepted" if accepted else "Login denied")
    return 0 if accepted else 1


def _cmd_feed(args: argparse.Namespace) -> int:
    from record_hub.bootstrap import build_services

    with build_services(backend=args.backend) as services:
        items = _settle(services.feed.build_feed(args.username))

    if not items:
        print(f"No posts for {args.username}")
    for item in items:
        print(item.headline)
    return 0


def _cmd_seed(args: argparse.Namespace) -> int:
    from record_hub.domain.auth import HmacPasswordHasher
    from record_hub.io.schema.seed_loader import (
        load_seed_file,
        seed_key_value,
        seed_relational,
    )

    settings = get_settings()
    backend = args.backend or settings.backend
    seed = load_seed_file(Path(args.file), HmacPasswordHasher(settings.password_salt))

    if backend == "relational":
        import sqlalchemy as sa

        engine = sa.create_engine(settings.relational_config().url)
        try:
            written = seed_relational(engine, seed)
        finally:
            engine.dispose()
    else:
        from record_hub.io.connectors.key_value_adapter import build_client

        kv_config = settings.key_value_config()
        client = build_client(kv_config)
        try:
            written = seed_key_value(client, seed, kv_config.key_prefix)
        finally:
            client.close()

    print(f"Seeded {backend} backend: {len(seed.users)} users, {len(seed.posts)} posts ({written} writes)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        prog="record_hub.cli",
        description="RecordHub CLI - user login and feed lookups over a pluggable backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--backend",
        choices=SUPPORTED_BACKENDS,
        default=None,
        help="Override the configured backend (RECORD_HUB_BACKEND)",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        help="Command to execute",
    )

    login_parser = subparsers.add_parser("login", help="Check user credentials")
    login_parser.add_argument("username")
    login_parser.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted)",
    )
    login_parser.set_defaults(handler=_cmd_login)

    feed_parser = subparsers.add_parser("feed", help="Print a user's feed")
    feed_parser.add_argument("username")
    feed_parser.set_defaults(handler=_cmd_feed)

    seed_parser = subparsers.add_parser("seed", help="Load a YAML seed file")
    seed_parser.add_argument("file", help="Path to the YAML seed file")
    seed_parser.set_defaults(handler=_cmd_seed)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.handler(args)
    except (RecordHubError, FileNotFoundError, TimeoutError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

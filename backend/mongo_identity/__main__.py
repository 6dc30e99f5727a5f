"""
Identity store maintenance commands.

Usage:
    python -m mongo_identity ensure-indexes [--connection NAME_OR_URL] [--db NAME]
    python -m mongo_identity drop-test-data --yes

Environment Variables:
    IDENTITY_CONNECTION_STRINGS: JSON mapping of connection names
    IDENTITY_DEFAULT_CONNECTION: Connection used when --connection is absent
    IDENTITY_TESTING: Use the unit-testing collection
    IDENTITY_LOG_LEVEL: Logging level (default: INFO)
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional

from mongo_identity.config import get_settings
from mongo_identity.core.exceptions import ConfigurationError
from mongo_identity.core.logging import configure_logging
from mongo_identity.database.connections import close_connections
from mongo_identity.models.account import Account, CaseInsensitiveAccount
from mongo_identity.services.user_store import UserStore

logger = logging.getLogger("mongo_identity")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m mongo_identity",
        description="Maintenance commands for the MongoDB identity store",
    )
    parser.add_argument("--connection", help="mongodb:// URL or configured connection name")
    parser.add_argument("--db", dest="db_name", help="Database name override")
    parser.add_argument("--collection", help="Collection name override")
    parser.add_argument("--log-level", help="Logging level (default from settings)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    indexes = subparsers.add_parser("ensure-indexes", help="Create lookup indexes")
    indexes.add_argument(
        "--case-insensitive",
        action="store_true",
        help="Index the lowercase userName/email mirror fields",
    )

    drop = subparsers.add_parser("drop-test-data", help="Drop the account collection")
    drop.add_argument("--yes", action="store_true", help="Confirm the drop")

    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the selected command and return the exit code."""
    account_model = (
        CaseInsensitiveAccount if getattr(args, "case_insensitive", False) else Account
    )
    store = UserStore(
        connection=args.connection,
        db_name=args.db_name,
        account_model=account_model,
        collection_name=args.collection,
    )

    async with store:
        if args.command == "ensure-indexes":
            names = await store.ensure_indexes()
            logger.info(f"✓ {len(names)} indexes in place")
        elif args.command == "drop-test-data":
            if not args.yes:
                logger.error("Refusing to drop accounts without --yes")
                return 2
            await store.drop_collection()
            logger.info("✓ Account collection dropped")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    async def _main() -> int:
        try:
            return await run(args)
        finally:
            await close_connections()

    try:
        return asyncio.run(_main())
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

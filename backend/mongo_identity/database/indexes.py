"""
Index management for the account collection.
"""
import logging

from motor.motor_asyncio import AsyncIOMotorCollection

from mongo_identity.database.databases import identity_db

logger = logging.getLogger(__name__)


async def create_account_indexes(
    collection: AsyncIOMotorCollection,
    lowercase_mirrors: bool,
) -> list[str]:
    """
    Create the lookup indexes used by the identity store.

    Args:
        collection: Account collection
        lowercase_mirrors: Whether lookups use the lowercase mirror fields

    Returns:
        Names of the indexes created or already present
    """
    names = []
    for index_def in identity_db.lookup_indexes(lowercase_mirrors):
        keys = index_def["keys"]
        kwargs = {k: v for k, v in index_def.items() if k != "keys"}
        names.append(await collection.create_index(keys, **kwargs))
    logger.info(f"Indexes ensured on {collection.name}: {', '.join(names)}")
    return names

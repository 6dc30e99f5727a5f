"""
Database definitions and collection constants.
"""
from mongo_identity.database.databases import identity_db

__all__ = ["identity_db"]

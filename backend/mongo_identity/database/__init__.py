"""
Database module - MongoDB connection resolution and collection definitions.

Import connection helpers from ``mongo_identity.database.connections``.
"""
from mongo_identity.database.databases import identity_db

__all__ = ["identity_db"]

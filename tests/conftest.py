"""
Global test fixtures for the identity store.

This module provides shared fixtures for all tests including:
- Mock MongoDB (mongomock-motor)
- Test settings that never touch the environment's connections
- Account factories
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))


# =============================================================================
# MongoDB Fixtures (mongomock)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.
    """
    try:
        from mongomock_motor import AsyncMongoMockClient
        client = AsyncMongoMockClient()
        yield client
        client.close()
    except ImportError:
        pytest.skip("mongomock-motor not installed")


@pytest_asyncio.fixture
async def mock_identity_db(mock_async_mongo_client):
    """Provide mock identity database."""
    yield mock_async_mongo_client["identity"]


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Settings with fixed connection strings and the unit-testing collection."""
    from mongo_identity.config import Settings

    return Settings(
        default_connection="DefaultConnection",
        connection_strings={
            "DefaultConnection": "mongodb://localhost:27017/identity",
            "NoDatabase": "mongodb://localhost:27017",
            "Descriptor": "server=db1:27017;database=accounts;user id=app;password=p@ss",
            "DescriptorNoDatabase": "server=db1:27017;replicaSet=rs0",
        },
        testing=True,
        users_collection=None,
    )


# =============================================================================
# Account Fixtures
# =============================================================================

@pytest.fixture
def make_account():
    """
    Factory for unsaved accounts.

    Usage:
        account = make_account(user_name="bob", roles=["admin"])
    """
    from mongo_identity.models.account import Account

    def _make(account_model=Account, **overrides):
        data = {
            "user_name": "testuser",
            "email": "testuser@example.com",
            "password_hash": "AQAAAAEAACcQAAAAEKx0hashed",
            "security_stamp": "d6b8e5f2-stamp",
        }
        data.update(overrides)
        return account_model(**data)

    return _make


@pytest.fixture
def mock_account_document() -> dict:
    """A complete account document as stored in MongoDB."""
    from bson import ObjectId
    from datetime import datetime

    return {
        "_id": ObjectId("507f1f77bcf86cd799439011"),
        "userName": "testuser",
        "email": "testuser@example.com",
        "emailConfirmed": True,
        "passwordHash": "AQAAAAEAACcQAAAAEKx0hashed",
        "securityStamp": "d6b8e5f2-stamp",
        "claims": [{"claimType": "department", "claimValue": "sales"}],
        "logins": [{"loginProvider": "Google", "providerKey": "g-123"}],
        "roles": ["Admin"],
        "dateCreated": datetime(2024, 12, 29, 10, 0, 0),
        "dateLastModified": datetime(2024, 12, 30, 8, 30, 0),
    }

"""
Backend-specific test fixtures.

These fixtures build identity stores on top of the mock database from the
global conftest.
"""

import pytest
import pytest_asyncio


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def user_store(mock_identity_db, test_settings):
    """UserStore with exact-match username/email lookups."""
    from mongo_identity.services.user_store import UserStore

    store = UserStore(mock_identity_db, settings=test_settings)
    yield store
    store.dispose()


@pytest_asyncio.fixture
async def case_insensitive_store(mock_identity_db, test_settings):
    """UserStore storing CaseInsensitiveAccount records."""
    from mongo_identity.models.account import CaseInsensitiveAccount
    from mongo_identity.services.user_store import UserStore

    store = UserStore(
        mock_identity_db,
        account_model=CaseInsensitiveAccount,
        settings=test_settings,
    )
    yield store
    store.dispose()


@pytest.fixture
def reset_client_cache():
    """Forget cached MongoDB clients before and after a test."""
    import mongo_identity.database.connections as conn_module

    conn_module._mongo_clients.clear()
    yield conn_module._mongo_clients
    conn_module._mongo_clients.clear()

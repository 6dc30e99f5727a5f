"""
MongoDB persistence for user identity records.

Stores accounts with their credentials, external logins, roles and claims,
and exposes the account-management operations an authentication layer needs.
"""
from mongo_identity.core.exceptions import (
    ConfigurationError,
    IdentityStoreError,
    InvalidAccountIdError,
    MissingArgumentError,
    StoreDisposedError,
)
from mongo_identity.models.account import (
    Account,
    AccountClaim,
    AccountLogin,
    CaseInsensitiveAccount,
)
from mongo_identity.services.account_query import AccountQuery
from mongo_identity.services.user_store import UserStore

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountClaim",
    "AccountLogin",
    "AccountQuery",
    "CaseInsensitiveAccount",
    "ConfigurationError",
    "IdentityStoreError",
    "InvalidAccountIdError",
    "MissingArgumentError",
    "StoreDisposedError",
    "UserStore",
]

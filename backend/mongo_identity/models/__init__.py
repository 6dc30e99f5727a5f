"""
Pydantic models for account documents.
"""
from mongo_identity.models.account import (
    Account,
    AccountClaim,
    AccountLogin,
    CaseInsensitiveAccount,
)

__all__ = [
    "Account",
    "AccountClaim",
    "AccountLogin",
    "CaseInsensitiveAccount",
]

"""
Identity store services.
"""
from mongo_identity.services.account_query import AccountQuery
from mongo_identity.services.user_store import UserStore

__all__ = ["AccountQuery", "UserStore"]

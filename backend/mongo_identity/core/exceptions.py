"""
Error types raised by the identity store.

Usage errors (missing arguments, malformed ids, use after dispose) and
configuration errors are raised immediately. Lookups that find nothing
return ``None`` instead of raising. Driver errors are not wrapped.
"""


class IdentityStoreError(Exception):
    """Base class for identity store errors."""


class StoreDisposedError(IdentityStoreError, RuntimeError):
    """The store was used after ``dispose()``."""

    def __init__(self, store_name: str):
        super().__init__(f"Cannot access a disposed object: {store_name}")
        self.store_name = store_name


class MissingArgumentError(IdentityStoreError, ValueError):
    """A required argument was None, empty or whitespace."""

    def __init__(self, argument: str):
        super().__init__(f"Value cannot be null or empty: {argument}")
        self.argument = argument


class InvalidAccountIdError(IdentityStoreError, ValueError):
    """An account id is not a valid 24-character hex ObjectId."""

    def __init__(self, account_id: object):
        super().__init__(f"'{account_id}' is not a valid account id")
        self.account_id = account_id


class ConfigurationError(IdentityStoreError):
    """A connection name or database name could not be resolved."""

"""
MongoDB user store for identity records.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Generic, Optional, TypeVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from mongo_identity.config import Settings, get_settings
from mongo_identity.core.exceptions import (
    MissingArgumentError,
    StoreDisposedError,
)
from mongo_identity.database.connections import resolve_database
from mongo_identity.database.databases import identity_db
from mongo_identity.database.indexes import create_account_indexes
from mongo_identity.models.account import Account, AccountClaim, AccountLogin, parse_account_id
from mongo_identity.services.account_query import AccountQuery

logger = logging.getLogger(__name__)

AccountT = TypeVar("AccountT", bound=Account)

Fields = identity_db.Fields


def _utcnow() -> datetime:
    # MongoDB keeps millisecond precision
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _next_modified(previous: Optional[datetime]) -> datetime:
    # dateLastModified must move forward even within the same millisecond
    now = _utcnow()
    if previous is not None and previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    if previous is not None and now <= previous:
        return previous + timedelta(milliseconds=1)
    return now


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class UserStore(Generic[AccountT]):
    """
    Account, login, claim, role, password, security stamp and email store.

    Lookups and create/update/delete talk to MongoDB. The claim, login,
    role, password, stamp and email operations only change the account
    passed in; call ``update`` to persist them.

    Usage:
        store = UserStore(connection="DefaultConnection")
        account = await store.find_by_username("alice")
        await store.add_to_role(account, "admin")
        await store.update(account)
    """

    def __init__(
        self,
        database: Optional[AsyncIOMotorDatabase] = None,
        *,
        connection: Optional[str] = None,
        db_name: Optional[str] = None,
        account_model: type[AccountT] = Account,
        collection_name: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize with a database handle or a connection reference.

        Args:
            database: Already open database; skips connection resolution
            connection: mongodb:// URL or configured connection name
            db_name: Database name overriding the one in the connection
            account_model: Record type stored and returned by the store
            collection_name: Collection override (defaults to settings)
            settings: Settings override (defaults to get_settings())

        Raises:
            ConfigurationError: If the connection cannot be resolved
        """
        self.settings = settings or get_settings()
        if database is None:
            database = resolve_database(connection, db_name, self.settings)
        self.db = database
        self.account_model = account_model
        self.users_collection = database[collection_name or self.settings.collection_name]
        self._disposed = False
        logger.info(
            f"User store ready on {database.name}.{self.users_collection.name} "
            f"({account_model.__name__})"
        )

    @property
    def case_insensitive_lookup(self) -> bool:
        """Whether username/email lookups go through the lowercase fields."""
        return self.account_model.lowercase_mirrors

    # ==================== Lifecycle ====================

    def _throw_if_disposed(self) -> None:
        if self._disposed:
            raise StoreDisposedError(type(self).__name__)

    def dispose(self) -> None:
        """
        Mark the store unusable.

        The database handle is owned by whoever created it and stays open.
        """
        if not self._disposed:
            self._disposed = True
            logger.info("User store disposed")

    async def __aenter__(self) -> "UserStore[AccountT]":
        self._throw_if_disposed()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.dispose()

    # ==================== Accounts ====================

    async def create(self, account: AccountT) -> AccountT:
        """
        Insert a new account.

        Stamps dateCreated and dateLastModified, assigns an id when the
        account has none and lowercases the email. No uniqueness checks.

        Args:
            account: Account to insert

        Returns:
            The same account, now carrying id and timestamps
        """
        self._throw_if_disposed()
        if account is None:
            raise MissingArgumentError("account")

        object_id = ObjectId() if account.id is None else parse_account_id(account.id)
        account.id = str(object_id)
        account.date_created = _utcnow()
        account.date_last_modified = account.date_created
        if account.email is not None:
            account.email = account.email.lower()

        document = account.to_document()
        document[Fields.ID] = object_id
        await self.users_collection.insert_one(document)
        logger.debug(f"Created account {account.id}")
        return account

    async def update(self, account: AccountT) -> AccountT:
        """
        Replace the stored account, inserting it if it does not exist.

        Args:
            account: Account to save

        Returns:
            The same account with dateLastModified refreshed
        """
        self._throw_if_disposed()
        if account is None:
            raise MissingArgumentError("account")

        object_id = parse_account_id(account.id)
        account.date_last_modified = _next_modified(account.date_last_modified)
        if account.email is not None:
            account.email = account.email.lower()

        await self.users_collection.replace_one(
            {Fields.ID: object_id},
            account.to_document(),
            upsert=True,
        )
        logger.debug(f"Saved account {account.id}")
        return account

    async def delete(self, account: AccountT) -> None:
        self._throw_if_disposed()
        if account is None:
            raise MissingArgumentError("account")

        await self.users_collection.delete_one({Fields.ID: parse_account_id(account.id)})
        logger.debug(f"Deleted account {account.id}")

    async def _find_one(self, query: dict) -> Optional[AccountT]:
        document = await self.users_collection.find_one(query)
        if not document:
            return None
        return self.account_model.from_document(document)

    async def find_by_id(self, account_id: str) -> Optional[AccountT]:
        """
        Get account by id.

        Raises:
            InvalidAccountIdError: If the id is not a valid ObjectId
        """
        self._throw_if_disposed()
        return await self._find_one({Fields.ID: parse_account_id(account_id)})

    async def find_by_username(self, user_name: str) -> Optional[AccountT]:
        """
        Get account by user name.

        Blank names return None without querying. The match is exact unless
        the record type stores lowercase mirrors.
        """
        self._throw_if_disposed()
        if _is_blank(user_name):
            return None

        if self.case_insensitive_lookup:
            query = {Fields.USER_NAME_LOWER: user_name.lower()}
        else:
            query = {Fields.USER_NAME: user_name}
        return await self._find_one(query)

    async def find_by_email(self, email: str) -> Optional[AccountT]:
        """
        Get account by email.

        Unlike find_by_username, a blank email is an error.

        Raises:
            MissingArgumentError: If email is None, empty or whitespace
        """
        self._throw_if_disposed()
        if _is_blank(email):
            raise MissingArgumentError("email")

        if self.case_insensitive_lookup:
            query = {Fields.EMAIL_LOWER: email.lower()}
        else:
            query = {Fields.EMAIL: email}
        return await self._find_one(query)

    async def find_by_login(self, login_provider: str, provider_key: str) -> Optional[AccountT]:
        """
        Get the account owning an external login.

        Provider and key must match within the same logins entry.
        """
        self._throw_if_disposed()
        if login_provider is None:
            raise MissingArgumentError("login_provider")
        if provider_key is None:
            raise MissingArgumentError("provider_key")

        return await self._find_one({
            Fields.LOGINS: {
                "$elemMatch": {
                    Fields.LOGIN_PROVIDER: login_provider,
                    Fields.PROVIDER_KEY: provider_key,
                }
            }
        })

    @property
    def users(self) -> AccountQuery[AccountT]:
        """
        All accounts as a lazily evaluated query.

        Evaluating the query after ``dispose()`` raises StoreDisposedError.
        """
        self._throw_if_disposed()
        return AccountQuery(
            self.users_collection,
            self.account_model,
            guard=self._throw_if_disposed,
        )

    async def ensure_indexes(self) -> list[str]:
        """Create lookup indexes matching the store's lookup fields."""
        self._throw_if_disposed()
        return await create_account_indexes(self.users_collection, self.case_insensitive_lookup)

    async def drop_collection(self) -> None:
        """Drop every account. Used to reset test fixtures."""
        self._throw_if_disposed()
        await self.users_collection.drop()
        logger.info(f"Dropped collection {self.users_collection.name}")

    def _require(self, account: Optional[AccountT]) -> AccountT:
        self._throw_if_disposed()
        if account is None:
            raise MissingArgumentError("account")
        return account

    # ==================== Claims ====================

    async def add_claim(self, account: AccountT, claim: AccountClaim) -> None:
        account = self._require(account)
        if claim is None:
            raise MissingArgumentError("claim")
        if claim not in account.claims:
            account.claims.append(claim)

    async def get_claims(self, account: AccountT) -> list[AccountClaim]:
        return list(self._require(account).claims)

    async def remove_claim(self, account: AccountT, claim: AccountClaim) -> None:
        account = self._require(account)
        if claim is None:
            raise MissingArgumentError("claim")
        account.claims = [c for c in account.claims if c != claim]

    # ==================== Logins ====================

    async def add_login(self, account: AccountT, login: AccountLogin) -> None:
        account = self._require(account)
        if login is None:
            raise MissingArgumentError("login")
        if login not in account.logins:
            account.logins.append(login)

    async def get_logins(self, account: AccountT) -> list[AccountLogin]:
        return list(self._require(account).logins)

    async def remove_login(self, account: AccountT, login: AccountLogin) -> None:
        account = self._require(account)
        if login is None:
            raise MissingArgumentError("login")
        account.logins = [existing for existing in account.logins if existing != login]

    # ==================== Roles ====================

    async def add_to_role(self, account: AccountT, role: str) -> None:
        account = self._require(account)
        if _is_blank(role):
            raise MissingArgumentError("role")
        if not await self.is_in_role(account, role):
            account.roles.append(role)

    async def get_roles(self, account: AccountT) -> list[str]:
        return list(self._require(account).roles)

    async def is_in_role(self, account: AccountT, role: str) -> bool:
        """Case-insensitive role membership check."""
        account = self._require(account)
        if role is None:
            return False
        wanted = role.casefold()
        return any(r.casefold() == wanted for r in account.roles)

    async def remove_from_role(self, account: AccountT, role: str) -> None:
        account = self._require(account)
        if role is None:
            return
        wanted = role.casefold()
        account.roles = [r for r in account.roles if r.casefold() != wanted]

    # ==================== Password ====================

    async def get_password_hash(self, account: AccountT) -> Optional[str]:
        return self._require(account).password_hash

    async def has_password(self, account: AccountT) -> bool:
        """True when a hash is set, whatever its format."""
        return self._require(account).password_hash is not None

    async def set_password_hash(self, account: AccountT, password_hash: Optional[str]) -> None:
        self._require(account).password_hash = password_hash

    # ==================== Security stamp ====================

    async def get_security_stamp(self, account: AccountT) -> Optional[str]:
        return self._require(account).security_stamp

    async def set_security_stamp(self, account: AccountT, stamp: Optional[str]) -> None:
        self._require(account).security_stamp = stamp

    # ==================== Email ====================

    async def get_email(self, account: AccountT) -> Optional[str]:
        return self._require(account).email

    async def get_email_confirmed(self, account: AccountT) -> bool:
        return self._require(account).email_confirmed

    async def set_email(self, account: AccountT, email: str) -> None:
        """
        Set the account email, lowercased.

        Raises:
            MissingArgumentError: If email is None, empty or whitespace
        """
        account = self._require(account)
        if _is_blank(email):
            raise MissingArgumentError("email")
        account.email = email.lower()

    async def set_email_confirmed(self, account: AccountT, confirmed: bool) -> None:
        self._require(account).email_confirmed = confirmed

    # ==================== Lockout (not supported) ====================

    async def get_access_failed_count(self, account: AccountT) -> int:
        self._throw_if_disposed()
        raise NotImplementedError("Account lockout is not supported")

    async def get_lockout_enabled(self, account: AccountT) -> bool:
        self._throw_if_disposed()
        raise NotImplementedError("Account lockout is not supported")

    async def get_lockout_end_date(self, account: AccountT) -> datetime:
        self._throw_if_disposed()
        raise NotImplementedError("Account lockout is not supported")

    async def increment_access_failed_count(self, account: AccountT) -> int:
        self._throw_if_disposed()
        raise NotImplementedError("Account lockout is not supported")

    async def reset_access_failed_count(self, account: AccountT) -> None:
        self._throw_if_disposed()
        raise NotImplementedError("Account lockout is not supported")

    async def set_lockout_enabled(self, account: AccountT, enabled: bool) -> None:
        self._throw_if_disposed()
        raise NotImplementedError("Account lockout is not supported")

    async def set_lockout_end_date(self, account: AccountT, lockout_end: datetime) -> None:
        self._throw_if_disposed()
        raise NotImplementedError("Account lockout is not supported")

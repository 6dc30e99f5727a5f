"""
Lazily evaluated queries over the account collection.
"""
from typing import Any, AsyncIterator, Callable, Generic, Optional, TypeVar

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING

from mongo_identity.database.databases import identity_db
from mongo_identity.models.account import Account, parse_account_id

AccountT = TypeVar("AccountT", bound=Account)


class AccountQuery(Generic[AccountT]):
    """
    Filterable view of every account in the collection.

    Builder methods return a new query and never touch the database.
    Documents are only read by ``async for``, ``to_list``, ``first`` or
    ``count``, after ``guard`` (if given) has approved the read.

    Usage:
        admins = await store.users.where(email_confirmed=True).filter(
            {"roles": "admin"}
        ).order_by("user_name").to_list()
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        account_model: type[AccountT],
        conditions: tuple[dict[str, Any], ...] = (),
        sort: tuple[tuple[str, int], ...] = (),
        skip: int = 0,
        limit: int = 0,
        guard: Optional[Callable[[], None]] = None,
    ):
        self._collection = collection
        self._account_model = account_model
        self._conditions = conditions
        self._sort = sort
        self._skip = skip
        self._limit = limit
        self._guard = guard

    def _copy(self, **changes: Any) -> "AccountQuery[AccountT]":
        state = {
            "conditions": self._conditions,
            "sort": self._sort,
            "skip": self._skip,
            "limit": self._limit,
        }
        state.update(changes)
        return AccountQuery(self._collection, self._account_model, guard=self._guard, **state)

    def _stored_name(self, field: str) -> str:
        """Map a model field name to its stored name."""
        model_fields = self._account_model.model_fields
        if field in model_fields:
            return model_fields[field].alias or field
        computed = self._account_model.model_computed_fields
        if field in computed:
            return computed[field].alias or field
        raise ValueError(f"Unknown account field: {field}")

    # ==================== Builders ====================

    def where(self, **conditions: Any) -> "AccountQuery[AccountT]":
        """Add equality conditions on account fields (model names)."""
        condition = {}
        for name, value in conditions.items():
            stored = self._stored_name(name)
            if stored == identity_db.Fields.ID:
                value = parse_account_id(value)
            condition[stored] = value
        return self._copy(conditions=self._conditions + (condition,))

    def filter(self, spec: dict[str, Any]) -> "AccountQuery[AccountT]":
        """Add a raw MongoDB filter written with stored field names."""
        return self._copy(conditions=self._conditions + (dict(spec),))

    def order_by(self, field: str, descending: bool = False) -> "AccountQuery[AccountT]":
        direction = DESCENDING if descending else ASCENDING
        return self._copy(sort=self._sort + ((self._stored_name(field), direction),))

    def skip(self, count: int) -> "AccountQuery[AccountT]":
        if count < 0:
            raise ValueError("skip must not be negative")
        return self._copy(skip=count)

    def limit(self, count: int) -> "AccountQuery[AccountT]":
        if count < 0:
            raise ValueError("limit must not be negative")
        return self._copy(limit=count)

    # ==================== Evaluation ====================

    @property
    def spec(self) -> dict[str, Any]:
        """The MongoDB filter this query runs."""
        if not self._conditions:
            return {}
        if len(self._conditions) == 1:
            return dict(self._conditions[0])
        return {"$and": [dict(c) for c in self._conditions]}

    def _cursor(self, limit: Optional[int] = None):
        if self._guard is not None:
            self._guard()
        kwargs: dict[str, Any] = {"skip": self._skip, "limit": self._limit if limit is None else limit}
        if self._sort:
            kwargs["sort"] = list(self._sort)
        return self._collection.find(self.spec, **kwargs)

    async def __aiter__(self) -> AsyncIterator[AccountT]:
        async for document in self._cursor():
            yield self._account_model.from_document(document)

    async def to_list(self) -> list[AccountT]:
        return [account async for account in self]

    async def first(self) -> Optional[AccountT]:
        """First matching account, or None."""
        async for document in self._cursor(limit=1):
            return self._account_model.from_document(document)
        return None

    async def count(self) -> int:
        """Number of matching accounts, ignoring skip and limit."""
        if self._guard is not None:
            self._guard()
        return await self._collection.count_documents(self.spec)

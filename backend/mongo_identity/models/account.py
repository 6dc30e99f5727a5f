"""
Account model for the identity database.
"""
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, Field, computed_field, field_validator

from mongo_identity.core.exceptions import InvalidAccountIdError, MissingArgumentError


def parse_account_id(account_id: Optional[str]) -> ObjectId:
    """
    Convert an account id string to the stored ObjectId.

    Raises:
        MissingArgumentError: If account_id is None
        InvalidAccountIdError: If account_id is not a 24-character hex ObjectId
    """
    if account_id is None:
        raise MissingArgumentError("account_id")
    if isinstance(account_id, ObjectId):
        return account_id
    try:
        return ObjectId(account_id)
    except (InvalidId, TypeError) as e:
        raise InvalidAccountIdError(account_id) from e


class AccountClaim(BaseModel):
    """A (type, value) assertion attached to an account."""
    claim_type: str = Field(..., alias="claimType")
    claim_value: str = Field(..., alias="claimValue")

    class Config:
        populate_by_name = True
        frozen = True


class AccountLogin(BaseModel):
    """An external identity linked to an account."""
    login_provider: str = Field(..., alias="loginProvider")
    provider_key: str = Field(..., alias="providerKey")

    class Config:
        populate_by_name = True
        frozen = True


class Account(BaseModel):
    """
    Account document model, one per user.

    Claims, logins and roles are edited in memory through the store and
    written only when the whole account is saved with ``UserStore.update``.
    """
    # Record types that persist lowercase copies of userName/email set this
    lowercase_mirrors: ClassVar[bool] = False

    id: Optional[str] = Field(None, alias="_id", description="MongoDB ObjectId as string")
    user_name: Optional[str] = Field(None, alias="userName")
    email: Optional[str] = Field(None, description="Stored lowercase")
    email_confirmed: bool = Field(default=False, alias="emailConfirmed")
    password_hash: Optional[str] = Field(
        None,
        alias="passwordHash",
        description="Hash supplied by the caller; None means no password set",
    )
    security_stamp: Optional[str] = Field(None, alias="securityStamp")
    claims: list[AccountClaim] = Field(default_factory=list)
    logins: list[AccountLogin] = Field(default_factory=list)
    roles: list[str] = Field(default_factory=list)
    date_created: Optional[datetime] = Field(
        None,
        alias="dateCreated",
        description="Set by the store on create",
    )
    date_last_modified: Optional[datetime] = Field(
        None,
        alias="dateLastModified",
        description="Set by the store on create and every update",
    )

    class Config:
        populate_by_name = True

    @field_validator("id", mode="before")
    @classmethod
    def _object_id_to_str(cls, value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        return value

    @field_validator("date_created", "date_last_modified")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # MongoDB hands back naive datetimes that are UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Account":
        """Build an account from a raw MongoDB document."""
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """Stored field layout, without the ``_id`` key."""
        return self.model_dump(by_alias=True, exclude={"id"})


class CaseInsensitiveAccount(Account):
    """
    Account that also stores lowercase copies of userName and email.

    A store using this record type looks users up through the lowercase
    fields, which makes username and email lookups case-insensitive.
    """
    lowercase_mirrors: ClassVar[bool] = True

    @computed_field(alias="userNameLowerCase")
    @property
    def user_name_lower_case(self) -> Optional[str]:
        return self.user_name.lower() if self.user_name is not None else None

    @computed_field(alias="emailLowerCase")
    @property
    def email_lower_case(self) -> Optional[str]:
        return self.email.lower() if self.email is not None else None

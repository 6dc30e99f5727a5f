"""
Identity database configuration.
Stores one document per user account.
"""


class Collections:
    """Collection names for account documents."""
    USERS = "AspNetUsers"
    USERS_TESTING = "AspNetUsers_UnitTesting"


class Fields:
    """Stored field names of an account document."""
    ID = "_id"
    USER_NAME = "userName"
    USER_NAME_LOWER = "userNameLowerCase"
    EMAIL = "email"
    EMAIL_LOWER = "emailLowerCase"
    LOGINS = "logins"
    LOGIN_PROVIDER = "loginProvider"
    PROVIDER_KEY = "providerKey"


def lookup_indexes(lowercase_mirrors: bool) -> list[dict]:
    """
    Index definitions for the fields the store queries.

    None of them are unique; uniqueness of user names and emails is left
    to deployments that want it.

    Args:
        lowercase_mirrors: Whether lookups go through the lowercase mirror fields

    Returns:
        List of {"keys": [...], **options} definitions
    """
    if lowercase_mirrors:
        user_name_field, email_field = Fields.USER_NAME_LOWER, Fields.EMAIL_LOWER
    else:
        user_name_field, email_field = Fields.USER_NAME, Fields.EMAIL

    return [
        {"keys": [(user_name_field, 1)], "name": f"{user_name_field}_lookup"},
        {"keys": [(email_field, 1)], "name": f"{email_field}_lookup"},
        {
            "keys": [
                (f"{Fields.LOGINS}.{Fields.LOGIN_PROVIDER}", 1),
                (f"{Fields.LOGINS}.{Fields.PROVIDER_KEY}", 1),
            ],
            "name": "logins_lookup",
        },
    ]

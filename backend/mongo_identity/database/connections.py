"""
Connection resolution for the identity database.

A connection is given either as a mongodb:// URL or as the name of an
entry in ``Settings.connection_strings``. Entries hold a URL or a
``key=value;key=value`` descriptor such as
``server=db1:27017;database=identity;user id=app;password=secret``.
"""
import logging
from typing import Optional
from urllib.parse import quote_plus

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError as MongoConfigurationError
from pymongo.uri_parser import parse_uri

from mongo_identity.config import Settings, get_settings
from mongo_identity.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

URL_SCHEMES = ("mongodb://", "mongodb+srv://")

# Descriptor keys understood by parse_connection_descriptor
_SERVER_KEYS = ("server", "servers", "host")
_DATABASE_KEYS = ("database", "db")
_USERNAME_KEYS = ("username", "user id", "uid", "user")
_PASSWORD_KEYS = ("password", "pwd")

# Clients by URL
_mongo_clients: dict[str, AsyncIOMotorClient] = {}


def is_mongo_url(value: str) -> bool:
    """Check whether a connection value is a MongoDB URL."""
    return value.strip().lower().startswith(URL_SCHEMES)


def database_name_from_url(url: str) -> Optional[str]:
    """
    Extract the database path of a MongoDB URL.

    Args:
        url: mongodb:// or mongodb+srv:// URL

    Returns:
        Database name, or None when the URL has no path

    Raises:
        ConfigurationError: If the URL cannot be parsed
    """
    try:
        parsed = parse_uri(url)
    except (MongoConfigurationError, ValueError) as e:
        raise ConfigurationError(f"Invalid MongoDB URL: {e}") from e
    return parsed.get("database") or None


def parse_connection_descriptor(descriptor: str) -> tuple[str, Optional[str]]:
    """
    Convert a key=value connection descriptor into a MongoDB URL.

    Keys are case-insensitive. Keys other than server, database, user and
    password are passed through as URL options.

    Args:
        descriptor: e.g. "server=localhost:27017;database=identity"

    Returns:
        Tuple of (url, database name or None)

    Raises:
        ConfigurationError: If the descriptor is malformed or names no server
    """
    values: dict[str, str] = {}
    for part in descriptor.split(";"):
        if not part.strip():
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise ConfigurationError(f"Malformed connection descriptor part: '{part.strip()}'")
        values[key.strip().lower()] = value.strip()

    def take(keys: tuple[str, ...]) -> Optional[str]:
        found = None
        for key in keys:
            if key in values:
                found = values.pop(key)
        return found or None

    server = take(_SERVER_KEYS)
    database = take(_DATABASE_KEYS)
    username = take(_USERNAME_KEYS)
    password = take(_PASSWORD_KEYS)

    if not server:
        raise ConfigurationError("No server specified in connection descriptor")

    credentials = ""
    if username:
        credentials = quote_plus(username)
        if password:
            credentials += f":{quote_plus(password)}"
        credentials += "@"

    url = f"mongodb://{credentials}{server}/{database or ''}"
    if values:
        options = "&".join(f"{key}={value}" for key, value in values.items())
        url += f"?{options}"
    return url, database


def get_mongo_client(url: str) -> AsyncIOMotorClient:
    """Get or create the MongoDB client for a URL."""
    client = _mongo_clients.get(url)
    if client is None:
        client = AsyncIOMotorClient(url)
        _mongo_clients[url] = client
    return client


async def close_connections() -> None:
    """Close all cached MongoDB clients."""
    while _mongo_clients:
        _, client = _mongo_clients.popitem()
        client.close()


def resolve_database(
    connection_name_or_url: Optional[str] = None,
    db_name: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> AsyncIOMotorDatabase:
    """
    Resolve a connection reference to a database handle.

    Args:
        connection_name_or_url: mongodb:// URL or connection name
            (defaults to settings.default_connection)
        db_name: Database name overriding the one in the connection
        settings: Settings to resolve names against (defaults to get_settings())

    Returns:
        Database handle

    Raises:
        ConfigurationError: If the name is unknown or no database name
            can be determined
    """
    settings = settings or get_settings()
    reference = connection_name_or_url or settings.default_connection

    if is_mongo_url(reference):
        url = reference
        database = db_name or database_name_from_url(url)
    else:
        connection_string = settings.connection_strings.get(reference)
        if connection_string is None:
            logger.warning(f"Connection '{reference}' is not configured")
            raise ConfigurationError(f"No connection string named '{reference}'")

        if is_mongo_url(connection_string):
            url = connection_string
            database = db_name or database_name_from_url(url)
        else:
            url, descriptor_database = parse_connection_descriptor(connection_string)
            database = db_name or descriptor_database

    if not database:
        source = "URL" if is_mongo_url(reference) else f"connection '{reference}'"
        logger.warning(f"No database name for {source}")
        raise ConfigurationError("No database name specified in connection string")

    return get_mongo_client(url)[database]

"""
Identity store configuration loaded from environment variables.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mongo_identity.database.databases import identity_db


class Settings(BaseSettings):
    """Identity store settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        env_file=".env",
        extra="ignore",
    )

    # Connections
    default_connection: str = Field(default="DefaultConnection")
    connection_strings: dict[str, str] = Field(
        default={"DefaultConnection": "mongodb://localhost:27017/identity"},
        description="Connection name -> mongodb:// URL or key=value descriptor",
    )

    # Collection
    users_collection: str | None = Field(default=None)
    testing: bool = Field(default=False)

    # Logging
    log_level: str = Field(default="INFO")

    @property
    def collection_name(self) -> str:
        """Collection holding the account documents."""
        if self.users_collection:
            return self.users_collection
        if self.testing:
            return identity_db.Collections.USERS_TESTING
        return identity_db.Collections.USERS


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""
Configuration management for HUNT_STORE.

Settings come from constructor arguments first and fall back to
environment variables, so the registry service can be wired either way.
"""

import os

from .constants import (DEFAULT_APP_KEY, DEFAULT_COLLECTION_NAME,
                        DEFAULT_ENVIRONMENT, DEFAULT_ORG_KEY_PREFIX)
from .exceptions import ConfigurationError


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class StoreConfig:
    """
    Document store configuration.

    Example:
        # Using environment variables
        config = StoreConfig()
        store = MongoDocumentStore.from_config(config)

        # Or using direct parameters
        config = StoreConfig(
            mongo_uri="mongodb://localhost:27017",
            db_name="hunts",
        )
    """

    def __init__(
        self,
        mongo_uri: str | None = None,
        db_name: str | None = None,
        collection_name: str | None = None,
        app_key: str | None = None,
        org_key_prefix: str | None = None,
        write_back_migrations: bool | None = None,
        default_environment: str | None = None,
    ):
        """
        Initialize configuration.

        Args:
            mongo_uri: MongoDB connection URI (defaults to MONGO_URI env var)
            db_name: Database name (defaults to DB_NAME env var or "hunt_store")
            collection_name: Collection holding the documents
                (defaults to HUNT_STORE_COLLECTION or "documents")
            app_key: Key of the App Registry document (defaults to
                HUNT_STORE_APP_KEY or "app.json")
            org_key_prefix: Prefix of org document keys (defaults to
                HUNT_STORE_ORG_PREFIX or "orgs/")
            write_back_migrations: Persist auto-migrated documents on load
                (defaults to HUNT_STORE_WRITE_BACK or true)
            default_environment: Environment stamped on a fresh App Registry
                (defaults to HUNT_STORE_ENVIRONMENT or "development")
        """
        self.mongo_uri = mongo_uri or os.getenv("MONGO_URI", "")
        self.db_name = db_name or os.getenv("DB_NAME", "hunt_store")
        self.collection_name = collection_name or os.getenv(
            "HUNT_STORE_COLLECTION", DEFAULT_COLLECTION_NAME
        )
        self.app_key = app_key or os.getenv("HUNT_STORE_APP_KEY", DEFAULT_APP_KEY)
        self.org_key_prefix = org_key_prefix or os.getenv(
            "HUNT_STORE_ORG_PREFIX", DEFAULT_ORG_KEY_PREFIX
        )
        if write_back_migrations is None:
            write_back_migrations = _env_flag("HUNT_STORE_WRITE_BACK", "true")
        self.write_back_migrations = write_back_migrations
        self.default_environment = default_environment or os.getenv(
            "HUNT_STORE_ENVIRONMENT", DEFAULT_ENVIRONMENT
        )

    def validate(self, require_mongo: bool = False) -> None:
        """
        Validate configuration values.

        Args:
            require_mongo: Also require MongoDB connection settings

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        if require_mongo and not self.mongo_uri:
            raise ConfigurationError(
                "mongo_uri is required (set MONGO_URI environment variable or pass directly)",
                config_key="mongo_uri",
            )

        if require_mongo and not self.db_name:
            raise ConfigurationError(
                "db_name is required (set DB_NAME environment variable or pass directly)",
                config_key="db_name",
            )

        if not self.app_key:
            raise ConfigurationError("app_key must not be empty", config_key="app_key")

        if not self.org_key_prefix:
            raise ConfigurationError(
                "org_key_prefix must not be empty", config_key="org_key_prefix"
            )

        if self.app_key.startswith(self.org_key_prefix):
            raise ConfigurationError(
                f"app_key '{self.app_key}' must not live under the org prefix "
                f"'{self.org_key_prefix}'",
                config_key="app_key",
                config_value=self.app_key,
            )

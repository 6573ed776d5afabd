"""Configuration loader for the Booky reading tracker."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Key reserved for backend health probes
HEALTH_CHECK_KEY = "health-check"


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Booky"
    version: str = "1.0.0"
    log_level: str = "INFO"


class StorageConfig(BaseModel):
    """Book collection backend configuration."""

    backend: str = "file"  # "memory", "file", "sqlite"
    books_file: str = "./data/books.json"
    sqlite_path: str = "./db/booky.db"
    key: str = "books"
    timeout_seconds: float = 5.0

    @field_validator("key")
    @classmethod
    def _key_not_reserved(cls, value: str) -> str:
        if value == HEALTH_CHECK_KEY:
            raise ValueError(f"'{HEALTH_CHECK_KEY}' is reserved for health checks")
        return value


class QueryConfig(BaseModel):
    """Pagination defaults for collection queries."""

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)


class ServerConfig(BaseModel):
    """HTTP request layer configuration."""

    host: str = "127.0.0.1"
    port: int = 3000


def _default_categories() -> list[str]:
    return ["Story", "Factual", "Picture"]


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    categories: list[str] = Field(default_factory=_default_categories)


# Environment variables that override storage settings
STORAGE_ENV_OVERRIDES: dict[str, str] = {
    "BOOKY_STORAGE_BACKEND": "backend",
    "BOOKY_BOOKS_FILE": "books_file",
    "BOOKY_SQLITE_PATH": "sqlite_path",
}


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Override storage location from environment
    for env_name, field_name in STORAGE_ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            setattr(config.storage, field_name, value)

    return config

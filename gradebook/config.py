"""Application settings.

Values come from environment variables (prefix ``GRADEBOOK_``) or a local
``.env`` file, read once through Pydantic Settings.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Core settings.

    - ``database_url``: SQLAlchemy URL, local SQLite by default.
    - ``secret_key``: HMAC key for bearer tokens; override in production.
    - ``password_hash_iterations``: PBKDF2 work factor for new hashes.
    """

    database_url: str = Field(
        default="sqlite:///./storage/gradebook.db", description="SQLAlchemy database URL"
    )
    secret_key: str = Field(
        default="change-me-in-production", description="Bearer token signing key"
    )
    token_expire_hours: int = Field(default=24, description="Bearer token lifetime")
    password_hash_iterations: int = Field(
        default=310_000, description="PBKDF2-SHA256 iterations"
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    model_config = {
        "env_prefix": "GRADEBOOK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached global settings instance."""

    return Settings()

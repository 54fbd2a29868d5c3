# app/core/config.py
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Dict, List, Optional

DEFAULT_SECRET_KEY = "change-me"


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./tms.db"
    AUTO_CREATE_TABLES: bool = True

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and ("localhost" in v or v.startswith("sqlite")):
            raise ValueError("Production environment cannot use a local database!")
        return v

    # === JWT ===
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v):
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and v == DEFAULT_SECRET_KEY:
            raise ValueError("Production environment requires a non-default SECRET_KEY!")
        return v

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["*"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === GraphQL ===
    GRAPHQL_IDE: Optional[str] = "graphiql"  # 'graphiql' | 'apollo-sandbox' | 'pathfinder' | None
    MAX_QUERY_COST: int = 1000
    LIST_FIELD_WEIGHTS: Dict[str, int] = {"shipments": 20}

    # === Pagination ===
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # === System ===
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # === Security ===
    BCRYPT_ROUNDS: int = 10


# Create a global settings instance
settings = Settings()

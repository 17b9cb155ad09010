"""
app/core/config.py

Purpose: Service configuration

- Read from the process environment and an optional .env file
- Mongo credentials and host are combined into one connection URL
- validate_settings() is run by the app lifespan before dialing
"""

from typing import List, Literal, Optional
from urllib.parse import quote_plus

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the user store."""

    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGO_USER: Optional[str] = Field(default=None, description="Database user")
    MONGO_PASS: Optional[str] = Field(default=None, description="Database password")
    MONGO_HOST: str = Field(default="localhost:27017", description="host[:port] of the server")
    MONGODB_DB_NAME: str = Field(default="users", description="Database holding customers, addresses and cards")
    MONGO_CONNECT_TIMEOUT_SECONDS: int = Field(default=5, description="Bound on the initial dial")

    # HTTP
    DEBUG: bool = False
    LOG_LEVEL: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    API_PREFIX: str = ""
    CORS_ORIGINS: List[str] = ["*"]
    PORT: int = 8000

    # Tracing
    LOGFIRE_TOKEN: Optional[str] = Field(default=None, description="Logfire write token; spans stay local without it")

    @validator("MONGO_PASS")
    def password_needs_user(cls, v, values):
        # A password without a user would be dropped from the URL
        if v and not values.get("MONGO_USER"):
            raise ValueError("MONGO_PASS is set but MONGO_USER is empty")
        return v

    @property
    def mongodb_url(self) -> str:
        """mongodb://[user:pass@]host/db with escaped credentials."""
        auth = ""
        if self.MONGO_USER:
            auth = f"{quote_plus(self.MONGO_USER)}:{quote_plus(self.MONGO_PASS or '')}@"
        return f"mongodb://{auth}{self.MONGO_HOST}/{self.MONGODB_DB_NAME}"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


settings = Settings()


def validate_settings(config: Optional[Settings] = None) -> bool:
    """
    Checks settings that pydantic cannot check field by field.

    Raises:
        ValueError: Listing every problem found.
    """
    config = config or settings
    problems = []

    if not config.MONGO_HOST:
        problems.append("MONGO_HOST is required")
    if config.MONGO_CONNECT_TIMEOUT_SECONDS <= 0:
        problems.append("MONGO_CONNECT_TIMEOUT_SECONDS must be positive")
    if config.is_production and not (config.MONGO_USER and config.MONGO_PASS):
        problems.append("MONGO_USER and MONGO_PASS are required in production")

    if problems:
        raise ValueError(f"Invalid configuration: {'; '.join(problems)}")
    return True

"""Application settings.

All values are read from the environment (or a local ``.env`` file) through
pydantic-settings. OAuth 1.0a consumer credentials are optional at load time
so the process can start without them; the OAuth1 domain validates them
fail-fast before the first network call.
"""

from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from postloom.core.config.enums import Environment, StoreBackendType


class Settings(BaseSettings):
    """Postloom settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"

    # ------------------------------------------------------------------
    # OAuth 1.0a consumer (the "API Key" / "API Secret" pair, not the
    # OAuth 2.0 client id / secret)
    # ------------------------------------------------------------------
    OAUTH1_CONSUMER_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OAUTH1_CONSUMER_KEY", "TWITTER_API_KEY", "X_API_KEY"),
    )
    OAUTH1_CONSUMER_SECRET: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "OAUTH1_CONSUMER_SECRET", "TWITTER_API_SECRET", "X_API_SECRET"
        ),
    )
    OAUTH1_CALLBACK_URL: Optional[str] = None

    OAUTH1_REQUEST_TOKEN_URL: str = "https://api.twitter.com/oauth/request_token"
    OAUTH1_AUTHORIZE_URL: str = "https://api.twitter.com/oauth/authorize"
    OAUTH1_ACCESS_TOKEN_URL: str = "https://api.twitter.com/oauth/access_token"

    # Upper bound on how long a pending authorization may wait for its
    # callback. The provider's own request-token lifetime is undocumented.
    OAUTH1_CORRELATION_TTL_SECONDS: int = Field(default=600, gt=0)

    OAUTH1_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    OAUTH1_BACKOFF_SECONDS: float = Field(default=1.0, ge=0)
    OAUTH1_HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------
    STORE_BACKEND: StoreBackendType = StoreBackendType.MEMORY

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # Fernet key used to encrypt token secrets at rest in Redis
    ENCRYPTION_KEY: Optional[SecretStr] = None

    @field_validator("OAUTH1_CONSUMER_KEY", "OAUTH1_CALLBACK_URL", mode="before")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        """Treat empty or whitespace-only env values as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("OAUTH1_CONSUMER_SECRET", mode="before")
    @classmethod
    def blank_secret_to_none(cls, value):
        """Treat an empty consumer secret as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def redis_url(self) -> str:
        """Connection URL for the configured Redis instance."""
        if self.REDIS_PASSWORD:
            from urllib.parse import quote

            encoded_pwd = quote(self.REDIS_PASSWORD, safe="")
            return f"redis://:{encoded_pwd}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

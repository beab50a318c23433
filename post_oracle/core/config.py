"""Application configuration."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Oracle settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "Post Oracle"
    version: str = "0.1.0"

    # CORS Settings
    cors_origins: list[str] = ["*"]  # Browser clients push content from any origin
    cors_allow_credentials: bool = False

    # Intake HTTP server
    ORACLE_HOST: str = "0.0.0.0"
    ORACLE_PORT: int = Field(default=3001, ge=1, le=65535)

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    # Ledger Settings
    SEPOLIA_RPC_URL: str | None = None
    ORACLE_PRIVATE_KEY: str | None = None
    CONTRACT_ADDRESS: str | None = None
    CONTRACT_ABI_PATH: str | None = None
    LEDGER_POLL_INTERVAL: float = Field(default=2.0, gt=0)
    LEDGER_CONFIRMATION_TIMEOUT: float = Field(default=120.0, gt=0)
    LEDGER_START_BLOCK: int | None = Field(default=None, ge=0)

    # Similarity service
    SIMILARITY_API_URL: str = (
        "https://kontho-kosh-server-production.up.railway.app/api/v1/generate"
    )
    SIMILARITY_TOP_K: int = Field(default=5, ge=1)
    SIMILARITY_TIMEOUT: float = Field(default=30.0, gt=0)
    SCORING_FAILURE_POLICY: Literal["fail_open", "fail_closed"] = "fail_open"

    # Pinata archival
    PINATA_API_URL: str = "https://api.pinata.cloud"
    PINATA_API_KEY: str | None = None
    PINATA_SECRET_KEY: str | None = None
    PINATA_CID_VERSION: int = Field(default=1, ge=0, le=1)
    ARCHIVAL_TIMEOUT: float = Field(default=60.0, gt=0)

    # Pipeline scheduling
    PIPELINE_INITIAL_DELAY: float = Field(default=2.0, ge=0)
    CONTENT_RETRY_DELAY: float = Field(default=3.0, ge=0)
    CONTENT_RETRY_BACKOFF: float = Field(default=1.5, ge=1.0)
    CONTENT_RETRY_MAX_DELAY: float = Field(default=60.0, ge=0)
    CONTENT_RETRY_MAX_ATTEMPTS: int = Field(default=20, ge=0)  # 0 retries forever
    MARK_FAILED_ON_GIVE_UP: bool = True
    PURGE_ON_FAILURE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def validate_retry_window(self) -> "Settings":
        """Keep the retry cap at or above the base delay."""
        if self.CONTENT_RETRY_MAX_DELAY < self.CONTENT_RETRY_DELAY:
            raise ValueError(
                "CONTENT_RETRY_MAX_DELAY must be greater than or equal to "
                "CONTENT_RETRY_DELAY"
            )
        return self

    @property
    def ledger_configured(self) -> bool:
        """Whether every ledger connection setting is present."""
        return bool(
            self.SEPOLIA_RPC_URL and self.ORACLE_PRIVATE_KEY and self.CONTRACT_ADDRESS
        )


# Create settings instance
settings = Settings()

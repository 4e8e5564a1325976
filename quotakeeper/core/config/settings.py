"""Application settings.

All defaults are defined here. Values are loaded from environment variables
(and a local ``.env`` file when present) through Pydantic Settings.
"""

from typing import Optional

from pydantic import Field, PostgresDsn, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quotakeeper.core.config.enums import Environment


class Settings(BaseSettings):
    """Quota engine settings.

    Attributes are upper-case to match their environment variable names,
    except for the DB pool sizing knobs which follow the existing
    lower-case convention used by ``db/session.py``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "quotakeeper"
    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"

    # ---- Database ----
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "quotakeeper"
    POSTGRES_PASSWORD: str = "quotakeeper"
    POSTGRES_DB: str = "quotakeeper"
    POSTGRES_SSLMODE: str = "prefer"
    DATABASE_URL: Optional[str] = Field(
        None, description="Full async SQLAlchemy URL; overrides the POSTGRES_* fields"
    )
    RUN_ALEMBIC_MIGRATIONS: bool = False

    db_pool_size: int = Field(20, alias="DB_POOL_SIZE")
    db_pool_max_overflow: int = Field(40, alias="DB_POOL_MAX_OVERFLOW")

    # ---- Duplicate-request guard ----
    USAGE_DEDUPE_WINDOW_SECONDS: float = 5.0
    USAGE_DEDUPE_EXPIRY_MULTIPLIER: float = 2.0
    USAGE_DEDUPE_MAX_ENTRIES: int = 100_000

    # ---- Store access ----
    USAGE_STORE_TIMEOUT_SECONDS: float = 10.0
    STORE_RETRY_ATTEMPTS: int = 3

    # ---- Billing-cycle reconciliation ----
    RECONCILIATION_ENABLED: bool = True
    RECONCILIATION_INTERVAL_SECONDS: float = 24 * 60 * 60
    RECONCILIATION_BATCH_SIZE: int = 500

    @model_validator(mode="after")
    def _validate_usage_knobs(self) -> "Settings":
        if self.USAGE_DEDUPE_WINDOW_SECONDS < 0:
            raise ValueError("USAGE_DEDUPE_WINDOW_SECONDS must be >= 0")
        if self.USAGE_DEDUPE_EXPIRY_MULTIPLIER < 1:
            raise ValueError("USAGE_DEDUPE_EXPIRY_MULTIPLIER must be >= 1")
        if self.RECONCILIATION_INTERVAL_SECONDS <= 0:
            raise ValueError("RECONCILIATION_INTERVAL_SECONDS must be > 0")
        if self.RECONCILIATION_INTERVAL_SECONDS > 28 * 24 * 60 * 60:
            # A sweep must fire at least once per calendar month.
            raise ValueError("RECONCILIATION_INTERVAL_SECONDS must not exceed 28 days")
        if self.RECONCILIATION_BATCH_SIZE <= 0:
            raise ValueError("RECONCILIATION_BATCH_SIZE must be > 0")
        if self.STORE_RETRY_ATTEMPTS < 1:
            raise ValueError("STORE_RETRY_ATTEMPTS must be >= 1")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> str:  # noqa: N802
        """Async database URL used by the engine and Alembic."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(
            PostgresDsn.build(
                scheme="postgresql+asyncpg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_HOST,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    @property
    def is_local(self) -> bool:
        """Whether this is a local or test environment."""
        return self.ENVIRONMENT in (Environment.LOCAL, Environment.TEST)

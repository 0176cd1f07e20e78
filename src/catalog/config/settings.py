from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import to_uppercase, to_lowercase, check_length_bounds

# length of products.title (String(255))
PRODUCT_TITLE_COLUMN_LENGTH = 255


class Settings(BaseSettings):
    """
    Application settings loaded from the environment (and an optional .env file).
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "catalog"

    # Test database configuration
    TEST_POSTGRES_DB: str | None = None
    TESTING: bool = False

    # Local / single-file database (skips Postgres entirely)
    USE_SQLITE: bool = False
    SQLITE_PATH: Path = Path("./catalog.db")

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False
    DB_CREATE_ALL: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/catalog")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # Forms
    PRODUCT_TITLE_MIN_LENGTH: int = 3
    PRODUCT_TITLE_MAX_LENGTH: int = 12
    FORM_EXTRA_FIELDS_FATAL: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the database URL for the current environment.

        - USE_SQLITE=True  -> sqlite+aiosqlite file database at SQLITE_PATH.
        - TESTING=True and TEST_POSTGRES_DB set -> the test database, so a test run
          never touches the regular one.
        - otherwise -> POSTGRES_DB.
        """
        if self.USE_SQLITE:
            return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"

        database = self.POSTGRES_DB
        if self.TESTING and self.TEST_POSTGRES_DB:
            database = self.TEST_POSTGRES_DB

        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{database}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Upper-case LOG_LEVEL before Literal validation so `debug` or `Info` in the
        environment are accepted.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def normalize_log_format(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    @model_validator(mode="after")
    def check_title_bounds(self) -> "Settings":
        check_length_bounds(
            self.PRODUCT_TITLE_MIN_LENGTH,
            self.PRODUCT_TITLE_MAX_LENGTH,
            name="PRODUCT_TITLE",
            ceiling=PRODUCT_TITLE_COLUMN_LENGTH,
        )
        return self

    model_config = SettingsConfigDict(
        # .env at the project root (three levels up from this file: config -> catalog -> src -> root)
        env_file=str(Path(__file__).resolve().parents[3] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings come from the process environment, which doesn't change at runtime,
# so one cached instance is shared by the app.
@lru_cache()
def get_settings() -> Settings:
    return Settings()

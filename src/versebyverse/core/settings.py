"""Application settings and configuration.

This module defines all configuration options for the VerseByVerse API.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    `SECRET_KEY` has no default, so a missing key aborts startup.
    """

    # Application metadata
    app_name: str = Field(default="VerseByVerse API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and sessions
    secret_key: str = Field(alias="SECRET_KEY")
    session_algorithm: str = Field(default="HS256", alias="SESSION_ALGORITHM")
    session_backend: str = Field(default="database", alias="SESSION_BACKEND")
    session_cookie_name: str = Field(default="vbv.sid", alias="SESSION_COOKIE_NAME")
    session_ttl_seconds: int = Field(default=60 * 60 * 2, alias="SESSION_TTL_SECONDS")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")
    session_cookie_samesite: str = Field(default="lax", alias="SESSION_COOKIE_SAMESITE")
    min_password_length: int = Field(default=4, alias="MIN_PASSWORD_LENGTH")

    # Database configuration
    database_url: str = Field(default="sqlite:///./versebyverse.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Redis configuration for the optional session backend
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Uploaded hero images
    upload_dir: str = Field(default="./uploads", alias="UPLOAD_DIR")
    upload_url_prefix: str = Field(default="/uploads", alias="UPLOAD_URL_PREFIX")
    hero_image_max_bytes: int = Field(default=5 * 1024 * 1024, alias="HERO_IMAGE_MAX_BYTES")

    # Scripture passage proxy
    passage_kor_base_url: str = Field(
        default="http://ibibles.net/quote.php",
        alias="PASSAGE_KOR_BASE_URL",
    )
    passage_timeout_seconds: float = Field(default=10.0, alias="PASSAGE_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url


settings = Settings()  # type: ignore[call-arg]

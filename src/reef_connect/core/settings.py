"""Application settings and configuration.

This module defines all configuration options for the Reef Connect service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Reef Connect API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./reef_connect.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Identity provider tokens (HS256 JWTs signed with the project secret)
    auth_jwt_secret: str = Field(alias="AUTH_JWT_SECRET")
    auth_jwt_algorithm: str = Field(default="HS256", alias="AUTH_JWT_ALGORITHM")
    auth_jwt_audience: str | None = Field(default="authenticated", alias="AUTH_JWT_AUDIENCE")

    # Check-in lifecycle
    checkin_expiry_hours: int = Field(default=8, alias="CHECKIN_EXPIRY_HOURS")
    checkin_fence_min_lat: float = Field(default=18.2, alias="CHECKIN_FENCE_MIN_LAT")
    checkin_fence_max_lat: float = Field(default=18.8, alias="CHECKIN_FENCE_MAX_LAT")
    checkin_fence_min_lng: float = Field(default=-65.1, alias="CHECKIN_FENCE_MIN_LNG")
    checkin_fence_max_lng: float = Field(default=-64.2, alias="CHECKIN_FENCE_MAX_LNG")
    location_restriction_enabled: bool = Field(
        default=True,
        alias="LOCATION_RESTRICTION_ENABLED",
    )
    # 5 nautical miles
    auto_checkout_distance_km: float = Field(default=9.3, alias="AUTO_CHECKOUT_DISTANCE_KM")

    # Presence and messaging
    online_threshold_seconds: int = Field(default=300, alias="ONLINE_THRESHOLD_SECONDS")
    message_max_length: int = Field(default=2000, alias="MESSAGE_MAX_LENGTH")
    message_page_size: int = Field(default=50, alias="MESSAGE_PAGE_SIZE")

    # Web push (VAPID)
    vapid_public_key: str | None = Field(default=None, alias="VAPID_PUBLIC_KEY")
    vapid_private_key: str | None = Field(default=None, alias="VAPID_PRIVATE_KEY")
    vapid_subject: str = Field(default="mailto:admin@reportthereef.com", alias="VAPID_SUBJECT")
    push_ttl_seconds: int = Field(default=86400, alias="PUSH_TTL_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
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
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]

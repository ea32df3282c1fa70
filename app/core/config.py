"""Application configuration."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "Geo Regions API"
    version: str = "0.1.0"
    api_prefix: str = ""

    # CORS Settings
    cors_origins: list[str] = ["*"]  # Default to allow all in development
    cors_allow_credentials: bool = False

    # MongoDB Settings
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "geo_regions"
    MONGODB_TRANSACTIONS: bool = True  # Requires a replica set or mongos
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = Field(default=5000, ge=0)

    # Redis Settings (geocoding cache, disabled when unset)
    REDIS_URL: str | None = None

    # Geocoding Settings
    GEOCODING_API_KEY: str | None = None
    GEOCODING_API_URL: str = "https://maps.googleapis.com"
    GEOCODING_TIMEOUT: int = Field(default=10, gt=0)
    GEOCODING_MAX_RETRIES: int = Field(default=2, ge=0)
    GEOCODING_ERROR_WAIT_SECONDS: float = Field(default=1.0, ge=0)
    GEOCODING_MIN_DELAY: float = Field(default=0.0, ge=0)
    GEOCODING_CACHE_TTL: int = Field(default=2592000, ge=0)  # 30 days

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def validate_origins(self) -> "Settings":
        """Validate CORS origins."""
        if self.cors_origins == ["*"]:
            self.cors_origins = [
                "http://localhost",
                "http://localhost:8000",
                "http://localhost:3000",
            ]
        return self

    @model_validator(mode="after")
    def use_test_database_for_testing(self) -> "Settings":
        """Use an isolated database and no cache for tests."""
        import os

        if os.getenv("TESTING") == "true":
            test_mongodb_uri = os.getenv("TEST_MONGODB_URI")
            if test_mongodb_uri:
                self.MONGODB_URI = test_mongodb_uri
            if not self.MONGODB_DATABASE.startswith("test_"):
                # Safety measure to avoid using the production database
                self.MONGODB_DATABASE = f"test_{self.MONGODB_DATABASE}"

            # Geocoding results must never leak between test runs
            self.REDIS_URL = os.getenv("TEST_REDIS_URL")
        return self


# Create settings instance
settings = Settings()

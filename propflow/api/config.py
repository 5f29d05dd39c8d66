"""HTTP API configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """API settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PROPFLOW_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS configuration
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Process enqueued commands before responding (local backend only)
    drain_local: bool = True

    # Listings JSON loaded into the projection at startup
    seed_file: str | None = None

    # Debug mode
    debug: bool = False


settings = Settings()

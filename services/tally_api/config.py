"""Configuration management for the Tally API service."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    SERVICE_NAME: str = "tally-api"
    API_VERSION: str = "v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Ledger behaviour: re-creating a proposal replaces its session when True
    ALLOW_SESSION_OVERWRITE: bool = True

    # Rate limiting
    RATE_LIMIT: str = "100000/second"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def api_prefix(self) -> str:
        """Versioned URL prefix for the API routes."""
        return f"/api/{self.API_VERSION}"

    @property
    def log_level(self) -> str:
        """Effective log level (DEBUG forces debug logging)."""
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()


settings = Settings()

"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from facturas import __version__


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Full SQLAlchemy async URL; overrides the DB_* parts when set"
    )
    db_driver: str = Field(
        default="mysql+aiomysql",
        description="SQLAlchemy dialect+driver used when DATABASE_URL is unset"
    )
    db_host: str = Field(default="localhost")
    db_port: int | None = Field(default=None, ge=1, le=65535)
    db_user: str = Field(default="root")
    db_password: str = Field(default="")
    db_name: str = Field(default="facturas_db")

    # Scraping
    scrape_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Timeout in seconds for fetching invoice pages"
    )
    scrape_user_agent: str = Field(
        default=f"facturas-scraper/{__version__}",
        description="User-Agent header sent when fetching invoice pages"
    )
    scrape_max_bytes: int = Field(
        default=5_000_000,
        gt=0,
        description="Largest page body accepted by the scraper"
    )

    # Server
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed by CORS (JSON list in the environment)"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with API docs and SQL echo"
    )

    @property
    def sqlalchemy_url(self) -> URL:
        """Return the effective database URL."""
        if self.database_url:
            return make_url(self.database_url)
        return URL.create(
            drivername=self.db_driver,
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    Call ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings()

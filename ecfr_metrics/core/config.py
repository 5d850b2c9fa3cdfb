"""
Configuration management for the eCFR agency metrics system.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # eCFR API
    ecfr_base_url: str = Field("https://www.ecfr.gov", alias="ECFR_BASE_URL")
    # None means requests wait indefinitely
    request_timeout_seconds: Optional[float] = Field(None, alias="ECFR_REQUEST_TIMEOUT")
    date_lookback_days: int = Field(5, alias="ECFR_DATE_LOOKBACK_DAYS", ge=1)

    # PostgreSQL
    postgres_host: str = Field("localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")
    postgres_db: str = Field("ecfr_db", alias="POSTGRES_DB")
    postgres_user: str = Field("postgres", alias="POSTGRES_USER")
    postgres_password: str = Field("", alias="POSTGRES_PASSWORD")
    db_pool_min_connections: int = Field(1, alias="DB_POOL_MIN", ge=1)
    db_pool_max_connections: int = Field(5, alias="DB_POOL_MAX", ge=1)

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @property
    def connection_kwargs(self) -> dict:
        """Keyword arguments for psycopg2.connect."""
        return {
            "host": self.postgres_host,
            "port": self.postgres_port,
            "dbname": self.postgres_db,
            "user": self.postgres_user,
            "password": self.postgres_password,
        }


# Global settings instance
settings = Settings()

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

from searchsort.constants import DEFAULT_RELEVANCE_FIELD


class Settings(BaseSettings):
    """searchsort settings.

    All values are loaded from environment variables.
    A .env file in the working directory is also supported.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Database ---
    DATABASE_URL: str = "sqlite://"
    DATABASE_DRIVER: str = ""  # explicit override, e.g. "pgsql" or "sqlsrv"
    TABLE_PREFIX: str = ""

    # --- Search ---
    RELEVANCE_FIELD: str = DEFAULT_RELEVANCE_FIELD

    @property
    def driver(self) -> str:
        """Driver name used to pick the SQL dialect adapter."""
        if self.DATABASE_DRIVER:
            return self.DATABASE_DRIVER
        return make_url(self.DATABASE_URL).get_backend_name()


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()

"""Application settings loaded from the environment."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    SQL = "sql"
    MEMORY = "memory"


class Settings(BaseSettings):
    """
    Runtime configuration for CampusReads.

    Built once by the caller of ``create_app`` and handed to every component
    that needs it. Values come from ``CAMPUSREADS_*`` environment variables
    or a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAMPUSREADS_",
        env_file=".env",
        extra="ignore",
    )

    store_backend: StoreBackend = StoreBackend.SQL
    database_url: str = "sqlite+aiosqlite:///./campusreads.db"
    database_echo: bool = False

    recommendation_limit: int = Field(default=5, ge=1, le=50)
    read_timeout_seconds: float = Field(default=5.0, gt=0)

    loan_period_days: int = Field(default=14, ge=1)

    # memory backend only
    seed_sample_books: bool = True

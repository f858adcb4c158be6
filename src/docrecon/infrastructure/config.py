"""Runtime settings, read from the environment (prefix ``DOCRECON_``) or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    # Directory holding one JSON file per collection
    data_dir: Path = Field(default=_DEFAULT_DATA_DIR)

    # Maximum operations per committed batch (the store refuses more than 500)
    batch_limit: int = Field(default=400, ge=1, le=500)

    # Delete inactive products and their units before recomputing stock
    purge_inactive_products: bool = False

    log_level: str = "INFO"
    log_file: Path | None = None

    model_config = SettingsConfigDict(
        env_prefix="DOCRECON_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()

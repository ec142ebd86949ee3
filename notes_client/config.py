"""Client configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

DEFAULT_TOKEN_FILE = Path.home() / ".notes_client" / "tokens.json"


class Settings(BaseSettings):
    """Application settings loaded from .env file or NOTES_* variables."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "NOTES_",
        "extra": "ignore",
    }

    # Notes API
    api_base_url: str = "http://localhost:8000/api"
    # None keeps the transport's own default timeout
    request_timeout: Optional[float] = None

    # Token persistence
    token_file: Path = DEFAULT_TOKEN_FILE

    # Logging
    log_level: str = "WARNING"

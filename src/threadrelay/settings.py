from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from .client import DEFAULT_BASE_URL


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


def _env_bool(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    openai_api_key: str = ""
    openai_assistant_id: Optional[str] = None
    openai_base_url: str = DEFAULT_BASE_URL
    host: str = "0.0.0.0"
    port: int = 3000
    frontend_url: str = "http://localhost:5173"
    request_timeout: float = 30.0
    poll_interval: float = 1.0
    poll_timeout: Optional[float] = None
    log_level: str = "INFO"
    log_timezone: Optional[str] = None
    mock_mode: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_assistant_id=os.getenv("OPENAI_ASSISTANT_ID") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
            request_timeout=_env_float("REQUEST_TIMEOUT", 30.0),
            poll_interval=_env_float("POLL_INTERVAL", 1.0),
            poll_timeout=_env_float("POLL_TIMEOUT", None),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_timezone=os.getenv("LOG_TIMEZONE") or None,
            mock_mode=_env_bool("MOCK_MODE"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Locate .env in the project root
env_path = Path(__file__).resolve().parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

logger = logging.getLogger(__name__)

DEFAULT_PERPLEXITY_BASE_URL = "https://api.perplexity.ai"
DEFAULT_PERPLEXITY_MODEL = "sonar-pro"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_BACKEND_TIMEOUT = 8.0
DEFAULT_REQUEST_DEADLINE = 20.0


def _read_seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"[CONFIG] {name}={raw!r} is not a number, using {default}")
        return default
    if value <= 0:
        logger.warning(f"[CONFIG] {name} must be positive, using {default}")
        return default
    return value


def _read_secret(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    perplexity_api_key: Optional[str] = None
    perplexity_base_url: str = DEFAULT_PERPLEXITY_BASE_URL
    perplexity_model: str = DEFAULT_PERPLEXITY_MODEL
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    backend_timeout: float = DEFAULT_BACKEND_TIMEOUT
    request_deadline: float = DEFAULT_REQUEST_DEADLINE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Reads the process environment (after .env has been loaded)."""
        return cls(
            perplexity_api_key=_read_secret("PERPLEXITY_API_KEY"),
            perplexity_base_url=os.getenv("PERPLEXITY_BASE_URL", DEFAULT_PERPLEXITY_BASE_URL).rstrip("/"),
            perplexity_model=os.getenv("PERPLEXITY_MODEL", DEFAULT_PERPLEXITY_MODEL),
            openai_api_key=_read_secret("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            backend_timeout=_read_seconds("BACKEND_TIMEOUT_SECONDS", DEFAULT_BACKEND_TIMEOUT),
            request_deadline=_read_seconds("REQUEST_DEADLINE_SECONDS", DEFAULT_REQUEST_DEADLINE),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()

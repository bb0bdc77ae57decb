import logging
import sys

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Upstream credential (optional at startup, required per request)
    deepseek_api_key: Optional[str] = None

    # Upstream endpoint configuration
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-chat"

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Timeout settings (seconds)
    provider_timeout: int = 60
    # Upper bound on a whole streaming session, including slow callers
    max_stream_seconds: int = 300

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()


def setup_logging():
    """Configure application logging."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# Initialize logging on import
setup_logging()

logger = logging.getLogger(__name__)


def warn_if_unconfigured() -> bool:
    """Log a warning when DEEPSEEK_API_KEY is missing. Returns True if configured."""
    if settings.deepseek_api_key:
        return True
    logger.warning("=" * 60)
    logger.warning("DEEPSEEK_API_KEY is not set.")
    logger.warning("Streaming requests will be rejected until it is configured:")
    logger.warning("    DEEPSEEK_API_KEY=sk-...")
    logger.warning("=" * 60)
    return False

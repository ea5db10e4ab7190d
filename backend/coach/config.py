import logging
import sys

from pydantic_settings import BaseSettings
from typing import Optional


def setup_logging():
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# Initialize logging on import
setup_logging()


class Settings(BaseSettings):
    # Chat backend (the coach function that produces the reply stream)
    chat_backend_url: str = "http://localhost:54321/functions/v1"
    chat_endpoint: str = "/chat"
    chat_api_token: Optional[str] = None

    # When False the backend is asked for one full body (x-no-stream: 1)
    stream_responses: bool = True

    # Timeout settings (seconds)
    request_timeout: int = 60

    # Only the most recent messages are forwarded upstream
    history_window: int = 16

    # Re-run suggestion extraction on every append while streaming
    extract_while_streaming: bool = True

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

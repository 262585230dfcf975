"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Engine
    EPUBCHECK_JAR_PATH: str = ""
    JAVA_BINARY: str = "java"
    JAVA_OPTIONS: list[str] = []
    SCRATCH_DIR: str = ""  # Empty = system temp dir
    PROCESS_TIMEOUT_SECONDS: float = 300.0

    # Update check
    VERSION_CHECK_ENABLED: bool = True
    VERSION_CHECK_TTL_SECONDS: int = 86400
    VERSION_FETCH_TIMEOUT_SECONDS: float = 10.0
    CACHE_DIR: str = "~/.cache/epubcheck-mcp"
    RELEASES_URL: str = "https://api.github.com/repos/w3c/epubcheck/releases/latest"
    RELEASES_PAGE_URL: str = "https://github.com/w3c/epubcheck/releases"

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()

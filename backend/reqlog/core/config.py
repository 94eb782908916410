from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application configuration settings."""

    # Application
    APP_NAME: str = "reqlog - Request and Response Logging"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # "json" or "text"

    # Request completion event
    REQUEST_LOG_MESSAGE_TEMPLATE: str = (
        "HTTP {RequestMethod} {RequestPath} responded {StatusCode} in {Elapsed:0.0000} ms"
    )
    REQUEST_LOG_IGNORED_PATHS: str = ""  # Comma separated, e.g. "/health,/metrics"

    # Header logging
    REQUEST_LOG_HEADERS_LOG_ALL: bool = False
    REQUEST_LOG_HEADERS_PREFIX: str = ""
    REQUEST_LOG_HEADERS_INCLUDE: str = ""
    REQUEST_LOG_HEADERS_EXCLUDE: str = ""

    # Body capture
    REQUEST_LOG_BODY_CHUNK_SIZE: int = 4096
    REQUEST_LOG_BUFFER_POOL_SIZE: int = 32  # Idle buffers kept for reuse
    REQUEST_LOG_MAX_POOLED_BUFFER_BYTES: int = 1024 * 1024  # Larger buffers are dropped

    class Config:
        env_file = ".env"
        case_sensitive = True

    @staticmethod
    def split_list(value: str) -> List[str]:
        """Split a comma separated setting into its non-empty items."""
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def ignored_paths(self) -> List[str]:
        return self.split_list(self.REQUEST_LOG_IGNORED_PATHS)

    @property
    def header_include(self) -> List[str]:
        return self.split_list(self.REQUEST_LOG_HEADERS_INCLUDE)

    @property
    def header_exclude(self) -> List[str]:
        return self.split_list(self.REQUEST_LOG_HEADERS_EXCLUDE)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

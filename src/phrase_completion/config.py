import json
import logging
import os
import sys
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Phrase store
    phrase_store_backend: str = os.getenv("PHRASE_STORE_BACKEND", "redis")
    phrase_key_prefix: str = os.getenv("PHRASE_KEY_PREFIX", "phrase_completion")
    phrase_quota: int = int(os.getenv("PHRASE_QUOTA", "200"))

    # Per-user cache
    cache_top_n: int = int(os.getenv("CACHE_TOP_N", "100"))
    cache_max_users: int = int(os.getenv("CACHE_MAX_USERS", "10000"))

    # Query
    query_result_limit: int = int(os.getenv("QUERY_RESULT_LIMIT", "5"))
    top_phrases_max: int = int(os.getenv("TOP_PHRASES_MAX", "100"))

    # Identity
    user_id_header: str = os.getenv("USER_ID_HEADER", "X-User-Id")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "text")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.phrase_store_backend not in ("redis", "memory"):
            raise ValueError(
                f"PHRASE_STORE_BACKEND must be 'redis' or 'memory', got {self.phrase_store_backend!r}"
            )

        if self.phrase_quota < 1:
            raise ValueError("PHRASE_QUOTA must be at least 1")

        if not 1 <= self.cache_top_n <= self.phrase_quota:
            raise ValueError("CACHE_TOP_N must be between 1 and PHRASE_QUOTA")

        if self.cache_max_users < 1:
            raise ValueError("CACHE_MAX_USERS must be at least 1")

        if self.query_result_limit < 1 or self.top_phrases_max < 1:
            raise ValueError("QUERY_RESULT_LIMIT and TOP_PHRASES_MAX must be positive")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"LOG_FORMAT must be 'text' or 'json', got {self.log_format!r}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Install a stdout handler on the root logger (once)."""
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel((level or settings.log_level).upper())
    handler = logging.StreamHandler(sys.stdout)
    if (fmt or settings.log_format) == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)

"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_bool(name: str, default: str) -> bool:
    return _get_env(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    products_index: str = _get_env("PRODUCTS_INDEX", "products")
    orders_index: str = _get_env("ORDERS_INDEX", "orders")
    users_index: str = _get_env("USERS_INDEX", "users")
    store_backend: str = _get_env("STORE_BACKEND", "elasticsearch")
    seed_path: str = _get_env("SEED_PATH", "seed.json")
    load_on_startup: bool = _get_bool("LOAD_ON_STARTUP", "true")
    synonyms_path: str = _get_env("SYNONYMS_PATH", "config/search_synonyms.txt")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    rate_limit_backend: str = _get_env("RATE_LIMIT_BACKEND", "memory")
    rate_limit_window_ms: int = int(_get_env("RATE_LIMIT_WINDOW_MS", "60000"))
    rate_limit_max: int = int(_get_env("RATE_LIMIT_MAX", "10"))
    rate_limit_max_keys: int = int(_get_env("RATE_LIMIT_MAX_KEYS", "10000"))
    trust_forwarded_for: bool = _get_bool("TRUST_FORWARDED_FOR", "true")
    search_default_limit: int = int(_get_env("SEARCH_DEFAULT_LIMIT", "8"))
    search_max_limit: int = int(_get_env("SEARCH_MAX_LIMIT", "30"))
    recent_orders_limit: int = int(_get_env("RECENT_ORDERS_LIMIT", "5"))
    recent_orders_max: int = int(_get_env("RECENT_ORDERS_MAX", "20"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()

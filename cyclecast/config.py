"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "CycleCast"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Postgres (period history store) ---
    database_url: str = "postgresql://localhost:5432/cyclecast"
    db_pool_min_size: int = 2
    db_pool_max_size: int = 20
    db_command_timeout: float = 30.0

    # --- Prediction cache ---
    cache_backend: str = "redis"  # redis | memory | none
    redis_url: str = ""  # empty disables the redis backend

    # --- Auth ---
    jwt_secret: str
    jwt_algorithm: str = "HS256"

    # --- Rate Limiting ---
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:5173"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]

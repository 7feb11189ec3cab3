from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_url: str = "sqlite+pysqlite:///./taskmarket.db"
    admin_email: str = "admin@taskmarket.local"
    admin_password: str = "change-me"
    admin_name: str = "Administrator"
    jwt_secret: str = "change-me-jwt-secret"
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60 * 24 * 7
    worker_starting_coins: int = 10
    buyer_starting_coins: int = 50
    payments_redirect: str = "/dashboard/payments"
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading environment variables."""

    return Settings()

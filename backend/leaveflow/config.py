from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leaveflow"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://leaveflow:leaveflow@db:5432/leaveflow"
    create_tables: bool = True
    cors_origins: list[str] = ["*"]

    # Balance categories and the allotment a newly registered user starts with.
    default_leave_balance: dict[str, float] = {"casual": 10, "sick": 5, "earned": 15}

    # Login issues this constant until a real session protocol exists.
    login_token: str = "DummyToken"

    @property
    def leave_categories(self) -> frozenset[str]:
        """Lower-cased names of the configured balance categories."""
        return frozenset(name.lower() for name in self.default_leave_balance)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = Field(...)
    db_pool_size: int = Field(default=10)
    db_connect_timeout: int = Field(default=10)
    db_command_timeout: int = Field(default=45)

    # Login timestamps are stored as local wall-clock time (Thailand, UTC+7)
    login_utc_offset_hours: int = Field(default=7)

    # Refuse stock writes outside the daily edit windows
    enforce_edit_window: bool = Field(default=False)

    log_level: str = Field(default="INFO")
    cors_origins: str = Field(default="*")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

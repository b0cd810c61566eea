"""Application settings loaded from environment variables."""

import os
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Liftoff configuration. All values come from environment variables."""

    # Logging
    log_level: str = Field(default="INFO")

    # Retry / backoff
    startup_max_retries: int = Field(default=3, ge=0)
    startup_backoff_strategy: Literal["linear", "exponential"] = Field(default="linear")
    startup_backoff_base_seconds: float = Field(default=1.0, ge=0)
    startup_backoff_max_seconds: float = Field(default=30.0, ge=0)

    # Scheduling
    startup_concurrent: bool = Field(default=False)

    # Error reporting
    error_reporting_enabled: bool = Field(default=True)

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()

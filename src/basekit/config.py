from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass
class FacadeConfig:
    fn_rate_limit_window_seconds: float = 0.5
    debug: bool = False

    registration_function: str = "register-phone-user"
    min_password_length: int = 8


class Settings(BaseSettings):
    """Environment-backed connection settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    supabase_url: str
    supabase_anon_key: str

    basekit_debug: bool = False
    basekit_fn_window_seconds: float = Field(default=0.5, ge=0.0)

    def to_facade_config(self) -> FacadeConfig:
        return FacadeConfig(
            fn_rate_limit_window_seconds=self.basekit_fn_window_seconds,
            debug=self.basekit_debug,
        )

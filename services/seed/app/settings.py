from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class SeedServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="forbid")

    database_url: str
    log_level: str = "info"

    bcrypt_rounds: int = 10
    invoice_policy: Literal["append", "skip_if_any"] = "append"


SETTINGS = SeedServiceSettings()

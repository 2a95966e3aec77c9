from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    seed_path: str = 'data/seed.json'

    # simulated API latency before a transfer is processed
    transfer_delay_seconds: float = Field(default=1.0, ge=0)
    transfer_timeout_seconds: float = Field(default=5.0, gt=0)

    # reject currency pairs missing from the rate table instead of using parity
    strict_fx: bool = False

    log_level: str = 'INFO'
    log_dir: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix='TREASURY_', env_file='.env', extra='ignore')


@lru_cache
def get_settings() -> Settings:
    return Settings()

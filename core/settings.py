"""Application settings and shared constants."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "Mining Royalty Office"
    database_url: str = Field("sqlite:///./mining_royalty.db")
    royalty_settings_path: str = Field("./data/royalty_settings.json")
    # Whether SSCL/VAT may be configured as 0%. When False every coefficient must be > 0.
    allow_zero_percentages: bool = Field(True)
    payment_due_days: int = Field(14)
    log_level: str = Field("INFO")
    log_file: Optional[str] = Field(None)

    @field_validator("payment_due_days")
    @classmethod
    def validate_payment_due_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("payment_due_days must be zero or positive")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()

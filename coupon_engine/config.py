import logging
from datetime import timedelta
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COUPON_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # codes are MD5 hex prefixes, so at most 32 characters
    code_length: int = Field(default=6, ge=1, le=32)
    valid_for_days: Optional[int] = Field(default=None, ge=0)  # None: coupons never expire
    code_max_attempts: int = Field(default=100, ge=1)
    log_level: str = "INFO"

    @property
    def valid_for(self) -> Optional[timedelta]:
        if self.valid_for_days is None:
            return None
        return timedelta(days=self.valid_for_days)


settings = Settings()


def configure_logging(config: Optional[Settings] = None) -> None:
    config = config or settings
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

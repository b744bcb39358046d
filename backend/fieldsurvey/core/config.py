"""Application configuration utilities."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel


class Settings(BaseModel):
    APP_NAME: str = "fieldsurvey"
    LOG_LEVEL: str = "INFO"
    # Zone used to interpret naive date-times received from external records.
    TZ: str = "Africa/Abidjan"


@lru_cache
def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "fieldsurvey"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        TZ=os.getenv("TZ", "Africa/Abidjan"),
    )


settings = get_settings()

import os
from typing import Optional
from pydantic import BaseModel, field_validator
import pytz

ENV_PREFIX = "CF_TRACKER_"


class Settings(BaseModel):
    api_base: str = "https://codeforces.com/api"
    min_interval: float = 1.0
    request_timeout: float = 15
    submissions_count: int = 10000
    timezone: Optional[str] = None  # None means the machine's local zone
    top_tags: int = 10
    streak_lookback_days: int = 365
    users_file: str = "users.txt"
    output_file: str = "data.json"

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {value}")
        return value


def load_settings(**overrides) -> Settings:
    values = {}
    for name in Settings.model_fields:
        env_value = os.environ.get(ENV_PREFIX + name.upper())
        if env_value is not None and env_value != "":
            values[name] = env_value
    values.update(overrides)
    return Settings(**values)

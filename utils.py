import logging
from datetime import date, datetime
from typing import List, Optional, Tuple, Type, TypeVar
from pydantic import BaseModel, ValidationError
import pytz

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

def dict_to_model(model_cls: Type[T], data: dict) -> T:
    valid_keys = set(model_cls.model_fields.keys())
    filtered = {k: v for k, v in data.items() if k in valid_keys and v is not None}
    return model_cls(**filtered)

def parse_models(model_cls: Type[T], items) -> List[T]:
    """Build models from an API result list, skipping entries that don't fit."""
    if not isinstance(items, list):
        logger.warning("Expected a list of %s records, got %s", model_cls.__name__, type(items).__name__)
        return []
    result = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed %s record: %r", model_cls.__name__, item)
            continue
        try:
            result.append(dict_to_model(model_cls, item))
        except ValidationError as e:
            logger.warning("Skipping invalid %s record: %s", model_cls.__name__, e)
    return result

def to_datetime(epoch_seconds: int, timezone: Optional[str] = None) -> datetime:
    if timezone is None:
        return datetime.fromtimestamp(epoch_seconds)
    return datetime.fromtimestamp(epoch_seconds, tz=pytz.timezone(timezone))

def to_date(epoch_seconds: int, timezone: Optional[str] = None) -> date:
    return to_datetime(epoch_seconds, timezone).date()

def now(timezone: Optional[str] = None) -> datetime:
    if timezone is None:
        return datetime.now()
    return datetime.now(pytz.timezone(timezone))

def today(timezone: Optional[str] = None) -> date:
    return now(timezone).date()

def load_users(file: str = "users.txt") -> Tuple[List[str], List[str]]:
    with open(file, "r") as f:
        real_names_with_handles = [line.strip().split(',') for line in f if line.strip()]
    real_names = [parts[0].strip() for parts in real_names_with_handles]
    handles = [parts[-1].strip() for parts in real_names_with_handles]
    return real_names, handles

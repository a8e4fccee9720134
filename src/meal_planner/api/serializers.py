"""JSON serialization of domain objects with camelCase field names."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


def to_json(value: object) -> object:
    """Convert dataclasses, models and enums into JSON-ready values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {
            to_camel(item.name): to_json(getattr(value, item.name))
            for item in fields(value)
        }
    if isinstance(value, BaseModel):
        return {
            to_camel(key): to_json(item) for key, item in value.model_dump().items()
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, frozenset | set):
        return sorted(to_json(item) for item in value)
    if isinstance(value, list | tuple):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value

"""Shared serialization utilities for sinks."""

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from bookstore.models.money import Money


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if isinstance(obj, Money):
        return money_to_dict(obj)
    elif is_dataclass(obj):
        return dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        return {k: serialize_value(v) for k, v in obj.items()}
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any) -> dict:
    """Convert dataclass to dict with proper serialization.

    ``asdict`` flattens nested dataclasses first, so a ``Money`` field
    arrives here as ``{"amount": Decimal, "currency": str}``.
    """
    result = {}
    for key, value in asdict(obj).items():
        result[key] = serialize_value(value)
    return result


def money_to_dict(money: Money) -> dict:
    return {"amount": str(money.amount), "currency": money.currency}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if isinstance(value, Money):
        return money_to_dict(value)
    elif isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif is_dataclass(value) and not isinstance(value, type):
        return dataclass_to_dict(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value

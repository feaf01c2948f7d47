"""
Translation between backend rows and domain objects.

Backend rows use snake_case keys with ISO-8601 timestamps and plain
string enums. The JSON API renders the same objects with camelCase keys.
"""

from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Type, Union

from dateutil.parser import isoparse

from .calculations import ensure_aware
from .enums import Category, IntervalType, Priority
from .schedule_item import MaintenanceScheduleItem
from .task import MaintenanceTask
from .vehicle import User, Vehicle

Domain = Union[User, Vehicle, MaintenanceTask]

# Assigned by the backend; never sent on insert unless already known.
SERVER_FIELDS = ("id", "created_at", "updated_at")


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(isoparse(value))


def _parse_int(value: Any) -> int:
    # Numeric columns can come back as floats or numeric strings
    return int(float(value))


_DATETIME_FIELDS = {
    "created_at": _parse_datetime,
    "updated_at": _parse_datetime,
}

_CONVERTERS: Dict[str, Dict[str, Callable[[Any], Any]]] = {
    "user": {"created_at": _parse_datetime, "is_premium": bool},
    "vehicle": {
        **_DATETIME_FIELDS,
        "year": _parse_int,
        "mileage": _parse_int,
    },
    "task": {
        **_DATETIME_FIELDS,
        "category": Category,
        "interval_type": IntervalType,
        "priority": Priority,
        "interval_mileage": _parse_int,
        "interval_months": _parse_int,
        "last_completed_mileage": _parse_int,
        "last_completed_date": _parse_datetime,
        "next_due_mileage": _parse_int,
        "next_due_date": _parse_datetime,
        "is_overdue": bool,
    },
}

_TYPES: Dict[str, Type] = {
    "user": User,
    "vehicle": Vehicle,
    "task": MaintenanceTask,
}


def to_domain(kind: str, row: Dict[str, Any]) -> Domain:
    """Build a domain object of the given kind from a backend row."""
    if kind not in _TYPES:
        raise ValueError(f"Unknown record kind: {kind!r}")
    cls = _TYPES[kind]
    converters = _CONVERTERS[kind]
    kwargs = {}
    for f in fields(cls):
        if f.name not in row:
            continue
        value = row[f.name]
        if value is not None and f.name in converters:
            value = converters[f.name](value)
        kwargs[f.name] = value
    return cls(**kwargs)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return ensure_aware(value).isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def to_persistence(obj: Domain) -> Dict[str, Any]:
    """Build a backend row from a domain object, omitting unset server fields."""
    if not isinstance(obj, tuple(_TYPES.values())):
        raise ValueError(f"Cannot persist {type(obj).__name__}")
    row = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.name in SERVER_FIELDS and value is None:
            continue
        row[f.name] = _serialize(value)
    return row


def camelize(name: str) -> str:
    """Convert snake_case to camelCase."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_api(obj: Union[Domain, MaintenanceScheduleItem]) -> Dict[str, Any]:
    """Render a domain object as a camelCase dict for JSON responses."""
    if not is_dataclass(obj):
        raise ValueError(f"Cannot render {type(obj).__name__}")
    return {camelize(f.name): _serialize(getattr(obj, f.name)) for f in fields(obj)}

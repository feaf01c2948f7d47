"""Enumerations for maintenance categories, interval types, and priorities."""

from enum import Enum


class Category(Enum):
    """Maintenance task categories."""

    OIL_CHANGE = "oil_change"
    TIRE_ROTATION = "tire_rotation"
    BRAKE_INSPECTION = "brake_inspection"
    FLUID_CHECK = "fluid_check"
    FILTER_REPLACEMENT = "filter_replacement"
    BATTERY = "battery"
    INSPECTION = "inspection"
    OTHER = "other"


class IntervalType(Enum):
    """How a task's recurrence is measured."""

    MILEAGE = "mileage"
    TIME = "time"
    BOTH = "both"

    @property
    def uses_mileage(self) -> bool:
        return self in (IntervalType.MILEAGE, IntervalType.BOTH)

    @property
    def uses_time(self) -> bool:
        return self in (IntervalType.TIME, IntervalType.BOTH)


class Priority(Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Lower rank = more important."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 1,
    Priority.HIGH: 2,
    Priority.MEDIUM: 3,
    Priority.LOW: 4,
}

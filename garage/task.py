"""MaintenanceTask dataclass: a per-vehicle instance of a schedule item."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .enums import Category, IntervalType, Priority


@dataclass
class MaintenanceTask:
    """A maintenance task with computed due values for one vehicle."""

    vehicle_id: str
    title: str
    description: str
    category: Category
    interval_type: IntervalType
    priority: Priority
    interval_mileage: Optional[int] = None
    interval_months: Optional[int] = None
    last_completed_mileage: Optional[int] = None
    last_completed_date: Optional[datetime] = None
    next_due_mileage: Optional[int] = None
    next_due_date: Optional[datetime] = None
    is_overdue: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_due_point(self) -> bool:
        return self.next_due_mileage is not None or self.next_due_date is not None

    def with_overdue(self, overdue: bool) -> "MaintenanceTask":
        """Return a copy with is_overdue replaced."""
        return replace(self, is_overdue=overdue)

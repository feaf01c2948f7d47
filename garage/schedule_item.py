"""MaintenanceScheduleItem: a template entry in the default schedule."""

from dataclasses import dataclass
from typing import Optional

from .enums import Category, IntervalType, Priority


def _check_interval(name: str, value: Optional[int]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class MaintenanceScheduleItem:
    """A recurring maintenance action shared by every vehicle's schedule."""

    title: str
    description: str
    category: Category
    interval_type: IntervalType
    priority: Priority
    interval_mileage: Optional[int] = None
    interval_months: Optional[int] = None

    def __post_init__(self):
        _check_interval("interval_mileage", self.interval_mileage)
        _check_interval("interval_months", self.interval_months)
        if self.interval_type.uses_mileage and self.interval_mileage is None:
            raise ValueError(
                f"{self.title}: interval type '{self.interval_type.value}' "
                "requires interval_mileage"
            )
        if self.interval_type.uses_time and self.interval_months is None:
            raise ValueError(
                f"{self.title}: interval type '{self.interval_type.value}' "
                "requires interval_months"
            )

    @property
    def interval_label(self) -> str:
        """Human-readable interval, e.g. '5,000 mi / 6 mo'."""
        parts = []
        if self.interval_type.uses_mileage:
            parts.append(f"{self.interval_mileage:,} mi")
        if self.interval_type.uses_time:
            parts.append(f"{self.interval_months} mo")
        return " / ".join(parts)

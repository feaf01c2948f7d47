"""Helper functions for due-point calculations."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from .task import MaintenanceTask

# Time-based intervals use a flat 30 days per month.
DAYS_PER_MONTH = 30


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def months_to_days(months: int) -> int:
    return months * DAYS_PER_MONTH


def calc_due_mileage(start_mileage: int, interval: Optional[int]) -> Optional[int]:
    """Next due mileage: start + interval, or None without an interval."""
    if interval is None:
        return None
    return start_mileage + interval


def calc_due_date(
    start: datetime, interval_months: Optional[int]
) -> Optional[datetime]:
    """Next due date: start + interval months (30-day months)."""
    if interval_months is None:
        return None
    return ensure_aware(start) + timedelta(days=months_to_days(interval_months))


def is_overdue(
    task: MaintenanceTask, current_mileage: Optional[int], now: datetime
) -> bool:
    """
    Check whether a task has reached either of its due points.

    A task with neither next_due_mileage nor next_due_date is never overdue.
    """
    if not task.has_due_point:
        return False
    if (
        task.next_due_mileage is not None
        and current_mileage is not None
        and current_mileage >= task.next_due_mileage
    ):
        return True
    if task.next_due_date is not None:
        return ensure_aware(now) >= ensure_aware(task.next_due_date)
    return False


def task_sort_key(task: MaintenanceTask) -> Tuple[int, int, int]:
    """Overdue first, then ascending next_due_mileage with None last."""
    if task.next_due_mileage is None:
        return (0 if task.is_overdue else 1, 1, 0)
    return (0 if task.is_overdue else 1, 0, task.next_due_mileage)

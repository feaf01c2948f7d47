"""Schedule instantiation and due-state classification."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Mapping, Optional

from .calculations import (
    calc_due_date,
    calc_due_mileage,
    ensure_aware,
    is_overdue,
    task_sort_key,
)
from .schedule_item import MaintenanceScheduleItem
from .task import MaintenanceTask


@dataclass
class TaskBuckets:
    """Tasks split by due state, each list already sorted."""

    overdue: List[MaintenanceTask] = field(default_factory=list)
    upcoming: List[MaintenanceTask] = field(default_factory=list)

    @property
    def all(self) -> List[MaintenanceTask]:
        return self.overdue + self.upcoming


def instantiate_schedule(
    items: Iterable[MaintenanceScheduleItem],
    vehicle_id: str,
    current_mileage: int,
    created_at: datetime,
) -> List[MaintenanceTask]:
    """
    Build one task per template entry for a newly added vehicle.

    - mileage/both entries: next_due_mileage = current_mileage + interval
    - time/both entries: next_due_date = created_at + interval (30-day months)
    - is_overdue is always False at creation, even when the arithmetic
      says the task is already due
    """
    if (
        isinstance(current_mileage, bool)
        or not isinstance(current_mileage, int)
        or current_mileage < 0
    ):
        raise ValueError(
            f"current_mileage must be a non-negative integer, got {current_mileage!r}"
        )
    created_at = ensure_aware(created_at)

    tasks = []
    for item in items:
        interval_type = item.interval_type
        tasks.append(
            MaintenanceTask(
                vehicle_id=vehicle_id,
                title=item.title,
                description=item.description,
                category=item.category,
                interval_type=interval_type,
                priority=item.priority,
                interval_mileage=item.interval_mileage,
                interval_months=item.interval_months,
                next_due_mileage=(
                    calc_due_mileage(current_mileage, item.interval_mileage)
                    if interval_type.uses_mileage
                    else None
                ),
                next_due_date=(
                    calc_due_date(created_at, item.interval_months)
                    if interval_type.uses_time
                    else None
                ),
                is_overdue=False,
            )
        )
    return tasks


def classify_task(
    task: MaintenanceTask, current_mileage: Optional[int], now: datetime
) -> MaintenanceTask:
    """Return a copy of the task with is_overdue recomputed."""
    return task.with_overdue(is_overdue(task, current_mileage, now))


def sort_tasks(tasks: Iterable[MaintenanceTask]) -> List[MaintenanceTask]:
    return sorted(tasks, key=task_sort_key)


def partition_tasks(
    tasks: Iterable[MaintenanceTask],
    mileage_by_vehicle: Mapping[str, int],
    now: datetime,
) -> TaskBuckets:
    """
    Classify tasks against their own vehicle's mileage and split them.

    Tasks for a vehicle missing from mileage_by_vehicle are checked on
    date only.
    """
    classified = sort_tasks(
        classify_task(task, mileage_by_vehicle.get(task.vehicle_id), now)
        for task in tasks
    )
    buckets = TaskBuckets()
    for task in classified:
        if task.is_overdue:
            buckets.overdue.append(task)
        else:
            buckets.upcoming.append(task)
    return buckets

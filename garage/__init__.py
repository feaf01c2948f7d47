"""
Vehicle maintenance domain models.

This package provides the domain side of the tracker:
- Category, IntervalType, Priority: enumerations
- MaintenanceScheduleItem: template entries of the default schedule
- MaintenanceTask: per-vehicle tasks with computed due points
- Vehicle, User: records owned by the backend
- instantiate_schedule / partition_tasks: scheduling and due-state logic
- to_domain / to_persistence / to_api: boundary mapping
"""

from .enums import Category, IntervalType, Priority
from .schedule_item import MaintenanceScheduleItem
from .task import MaintenanceTask
from .vehicle import User, Vehicle
from .calculations import (
    DAYS_PER_MONTH,
    calc_due_date,
    calc_due_mileage,
    is_overdue,
    task_sort_key,
)
from .scheduling import (
    TaskBuckets,
    classify_task,
    instantiate_schedule,
    partition_tasks,
    sort_tasks,
)
from .mapping import to_api, to_domain, to_persistence
from .loader import load_schedule
from .errors import (
    AuthServiceError,
    BackendError,
    ConfigError,
    EmailNotConfirmedError,
    GarageError,
    RegistryError,
    RemoteServiceError,
    ScheduleFormatError,
    ValidationError,
)

__all__ = [
    "Category",
    "IntervalType",
    "Priority",
    "MaintenanceScheduleItem",
    "MaintenanceTask",
    "User",
    "Vehicle",
    "DAYS_PER_MONTH",
    "calc_due_date",
    "calc_due_mileage",
    "is_overdue",
    "task_sort_key",
    "TaskBuckets",
    "classify_task",
    "instantiate_schedule",
    "partition_tasks",
    "sort_tasks",
    "to_api",
    "to_domain",
    "to_persistence",
    "load_schedule",
    "AuthServiceError",
    "BackendError",
    "ConfigError",
    "EmailNotConfirmedError",
    "GarageError",
    "RegistryError",
    "RemoteServiceError",
    "ScheduleFormatError",
    "ValidationError",
]

"""Vehicle and dashboard operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from garage.errors import BackendError, ValidationError
from garage.schedule_item import MaintenanceScheduleItem
from garage.scheduling import instantiate_schedule, partition_tasks
from garage.task import MaintenanceTask
from garage.validation import parse_mileage, parse_vehicle_form
from garage.vehicle import Vehicle

from .backend import BackendClient

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AddVehicleResult:
    """Outcome of adding a vehicle. warnings lists non-fatal problems."""

    vehicle: Vehicle
    tasks: List[MaintenanceTask] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class Dashboard:
    vehicles: List[Vehicle] = field(default_factory=list)
    overdue: List[MaintenanceTask] = field(default_factory=list)
    upcoming: List[MaintenanceTask] = field(default_factory=list)

    @property
    def most_urgent(self) -> Optional[MaintenanceTask]:
        if self.overdue:
            return self.overdue[0]
        return self.upcoming[0] if self.upcoming else None


class GarageService:
    """Adds vehicles with their default schedule and builds the dashboard."""

    def __init__(
        self,
        backend: BackendClient,
        schedule: Sequence[MaintenanceScheduleItem],
        clock: Callable[[], datetime] = utc_now,
    ):
        self.backend = backend
        self.schedule = tuple(schedule)
        self.clock = clock

    def add_vehicle(
        self,
        user_id: str,
        make: Optional[str],
        model: Optional[str],
        year,
        mileage,
        vin: Optional[str] = None,
        nickname: Optional[str] = None,
        trim: Optional[str] = None,
    ) -> AddVehicleResult:
        """
        Validate the form, insert the vehicle, then its default schedule.

        A failed task insert leaves the vehicle in place and is reported in
        AddVehicleResult.warnings rather than raised.
        """
        now = self.clock()
        form = parse_vehicle_form(
            make, model, year, mileage,
            vin=vin, nickname=nickname, today=now.date(), trim=trim,
        )

        vehicle = self.backend.insert_vehicle(
            Vehicle(
                user_id=user_id,
                make=form.make,
                model=form.model,
                year=form.year,
                mileage=form.mileage,
                vin=form.vin,
                trim=form.trim,
                nickname=form.nickname,
            )
        )
        logger.info("Added vehicle %s (%s)", vehicle.id, vehicle.name)

        result = AddVehicleResult(vehicle=vehicle)
        tasks = instantiate_schedule(self.schedule, vehicle.id, form.mileage, now)
        try:
            result.tasks = self.backend.insert_tasks(tasks)
        except BackendError as e:
            logger.warning(
                "Error creating maintenance tasks for vehicle %s: %s",
                vehicle.id,
                e.user_message,
            )
            result.warnings.append(
                "Vehicle was added, but its maintenance schedule could not be created."
            )
        return result

    def list_vehicles(self, user_id: str) -> List[Vehicle]:
        return self.backend.list_vehicles(user_id)

    def load_dashboard(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> Dashboard:
        """
        Load a user's vehicles and classify their tasks as overdue or upcoming.

        Each task is compared to its own vehicle's current mileage. limit caps
        the combined number of tasks, keeping the most urgent, and must not be
        negative.
        """
        if limit is not None and limit < 0:
            raise ValidationError({"limit": "Limit must be zero or more"})
        now = now or self.clock()
        vehicles = self.backend.list_vehicles(user_id)
        dashboard = Dashboard(vehicles=vehicles)
        if not vehicles:
            return dashboard

        tasks = self.backend.list_tasks([v.id for v in vehicles])
        buckets = partition_tasks(tasks, {v.id: v.mileage for v in vehicles}, now)

        overdue, upcoming = buckets.overdue, buckets.upcoming
        if limit is not None:
            overdue = overdue[:limit]
            upcoming = upcoming[: max(limit - len(overdue), 0)]
        dashboard.overdue = overdue
        dashboard.upcoming = upcoming
        logger.debug(
            "Dashboard for %s: %d overdue, %d upcoming",
            user_id,
            len(overdue),
            len(upcoming),
        )
        return dashboard

    def update_mileage(self, vehicle_id: str, mileage) -> Optional[Vehicle]:
        """Record a new odometer reading. Due states are recomputed on the next read."""
        return self.backend.update_vehicle_mileage(vehicle_id, parse_mileage(mileage))

    def delete_vehicle(self, vehicle_id: str) -> None:
        self.backend.delete_vehicle(vehicle_id)
        logger.info("Deleted vehicle %s", vehicle_id)

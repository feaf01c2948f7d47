"""YAML loading for maintenance schedule templates."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import jsonschema
import yaml

from .enums import Category, IntervalType, Priority
from .errors import ScheduleFormatError
from .schedule_item import MaintenanceScheduleItem

PACKAGE_DIR = Path(__file__).parent
DEFAULT_SCHEDULE_PATH = PACKAGE_DIR / "default_schedule.yaml"
SCHEMA_PATH = PACKAGE_DIR / "schedule_schema.yaml"


def load_schema() -> dict:
    """Load the JSON schema for schedule template files."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def validate_schedule_data(data: Any, schema: Optional[dict] = None) -> List[str]:
    """Validate parsed template data. Returns a list of error messages."""
    validator = jsonschema.Draft7Validator(schema or load_schema())
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        location = ".".join(str(p) for p in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")
    return errors


def _parse_item(dct: Dict[str, Any]) -> MaintenanceScheduleItem:
    return MaintenanceScheduleItem(
        title=dct["title"],
        description=dct["description"],
        category=Category(dct["category"]),
        interval_type=IntervalType(dct["intervalType"]),
        priority=Priority(dct["priority"]),
        interval_mileage=dct.get("intervalMileage"),
        interval_months=dct.get("intervalMonths"),
    )


def load_schedule(
    filename: Optional[Union[str, Path]] = None,
) -> Tuple[MaintenanceScheduleItem, ...]:
    """
    Load a schedule template from YAML (the bundled default when no file given).

    Raises ScheduleFormatError if the file fails schema validation.
    """
    path = Path(filename) if filename is not None else DEFAULT_SCHEDULE_PATH
    try:
        with open(path, "rb") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise ScheduleFormatError(f"{path.name}: YAML parse error: {e}") from e

    errors = validate_schedule_data(data)
    if errors:
        raise ScheduleFormatError(f"{path.name}: " + "; ".join(errors))

    return tuple(_parse_item(dct) for dct in data["schedule"])

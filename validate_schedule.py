#!/usr/bin/env python3
"""Validate maintenance schedule template YAML files against the schema."""
import sys
from pathlib import Path
from typing import List

import yaml

from garage.loader import DEFAULT_SCHEDULE_PATH, load_schema, validate_schedule_data


def validate_schedule_file(filepath: Path, schema: dict) -> List[str]:
    """Validate a single schedule YAML file. Returns list of errors."""
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]
    except OSError as e:
        return [f"Error: {e}"]
    return validate_schedule_data(data, schema)


def main(argv=None):
    """Validate the given schedule files (the bundled default when none given)."""
    paths = [Path(p) for p in (argv if argv is not None else sys.argv[1:])]
    if not paths:
        paths = [DEFAULT_SCHEDULE_PATH]

    schema = load_schema()
    all_valid = True
    for filepath in paths:
        errors = validate_schedule_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())

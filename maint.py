#!/usr/bin/env python3
"""
Unified CLI for vehicle maintenance tracking.

Commands:
  signup / signin / signout      - Manage your account session
  reset-password                 - Email a password reset link
  resend-verification            - Resend the sign-up confirmation email
  whoami                         - Show the signed-in profile
  add-vehicle                    - Add a vehicle and create its default schedule
  vehicles                       - List your vehicles
  update-miles                   - Update a vehicle's current mileage
  delete-vehicle                 - Delete a vehicle and its tasks
  dashboard                      - Show overdue and upcoming maintenance
  decode-vin                     - Look up make/model/year for a VIN
  makes / models                 - Browse the vehicle registry
  schedule                       - List the default maintenance schedule
"""

import argparse
import getpass
import logging
import sys
from datetime import datetime
from pathlib import Path
from tabulate import tabulate
from typing import Dict, List, Optional

from garage import (
    EmailNotConfirmedError,
    GarageError,
    MaintenanceScheduleItem,
    MaintenanceTask,
    RemoteServiceError,
    ValidationError,
    Vehicle,
    load_schedule,
)
from garage.validation import parse_mileage
from services import AppServices, NhtsaClient, Settings
from services.logging_setup import setup_logging

# =============================================================================
# Formatting helpers
# =============================================================================


def format_miles(miles: Optional[int]) -> str:
    """Format mileage for display."""
    return f"{miles:,}" if miles is not None else "-"


def format_due_date(moment: Optional[datetime]) -> str:
    """Format a due date as YYYY-MM-DD."""
    return moment.date().isoformat() if moment is not None else "-"


def format_priority(task: MaintenanceTask) -> str:
    return task.priority.value.upper()


def format_remaining(task: MaintenanceTask, current_miles: Optional[int]) -> str:
    """Miles left until the task is due (negative when overdue)."""
    if task.next_due_mileage is None or current_miles is None:
        return "-"
    remaining = task.next_due_mileage - current_miles
    if remaining < 0:
        return f"-{abs(remaining):,}"
    return f"{remaining:,}"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def print_validation_error(err: ValidationError) -> None:
    for field, message in err.errors.items():
        print(f"Error ({field}): {message}")


# =============================================================================
# Tables
# =============================================================================


def make_task_table(
    tasks: List[MaintenanceTask], vehicles: Dict[str, Vehicle]
) -> List[List[str]]:
    """Convert tasks to table rows."""
    rows = []
    for task in tasks:
        vehicle = vehicles.get(task.vehicle_id)
        rows.append(
            [
                task.title,
                vehicle.display_name if vehicle else task.vehicle_id,
                format_priority(task),
                format_miles(task.next_due_mileage),
                format_due_date(task.next_due_date),
                format_remaining(task, vehicle.mileage if vehicle else None),
            ]
        )
    return rows


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    rows = []
    for vehicle in vehicles:
        rows.append(
            [
                vehicle.id,
                vehicle.name,
                vehicle.nickname or "-",
                format_miles(vehicle.mileage),
                vehicle.vin or "-",
            ]
        )
    return rows


def make_schedule_table(items: List[MaintenanceScheduleItem]) -> List[List[str]]:
    """Convert schedule items to table rows, most important first."""
    rows = []
    for item in sorted(items, key=lambda i: i.priority.rank):
        rows.append(
            [
                item.title,
                item.category.value,
                item.interval_label,
                item.priority.value,
                truncate(item.description, 40),
            ]
        )
    return rows


# =============================================================================
# Session helpers
# =============================================================================


def require_user(services: AppServices) -> Optional[str]:
    """Restore the stored session and return the user id, or None."""
    user_id = services.auth.restore_session()
    if user_id is None:
        print("Error: Not signed in. Run 'maint.py signin EMAIL' first.")
    return user_id


def read_password(args, prompt: str = "Password: ") -> str:
    return args.password if args.password is not None else getpass.getpass(prompt)


# =============================================================================
# Account commands
# =============================================================================


def cmd_signup(args, services: AppServices):
    """Create an account."""
    password = read_password(args)
    confirm = (
        args.password if args.password is not None
        else getpass.getpass("Confirm password: ")
    )
    services.auth.sign_up(args.email, password, confirm)
    print(f"Account created for {args.email}.")
    print("Check your inbox and click the verification link before signing in.")
    return 0


def cmd_signin(args, services: AppServices):
    """Sign in and store the session."""
    session = services.auth.sign_in(args.email, read_password(args))
    print(f"Signed in as {session.email}.")
    return 0


def cmd_signout(args, services: AppServices):
    services.auth.sign_out()
    print("Signed out.")
    return 0


def cmd_reset_password(args, services: AppServices):
    services.auth.reset_password(args.email)
    print("We have sent you a password reset link. Please check your email.")
    return 0


def cmd_resend_verification(args, services: AppServices):
    services.auth.resend_verification(args.email)
    print(
        "A new confirmation email has been sent. "
        "Please check your inbox and click the verification link."
    )
    return 0


def cmd_whoami(args, services: AppServices):
    if require_user(services) is None:
        return 1
    user = services.auth.current_user()
    print(f"Email:   {user.email}")
    print(f"User ID: {user.id}")
    print(f"Plan:    {'Premium' if user.is_premium else 'Free'}")
    return 0


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_add_vehicle(args, services: AppServices):
    """Add a vehicle, optionally filling make/model/year from its VIN."""
    user_id = require_user(services)
    if user_id is None:
        return 1

    make, model, year, trim = args.make, args.model, args.year, args.trim
    if args.vin and not (make and model and year):
        decoded = services.registry.decode_vin(args.vin)
        if decoded is None:
            print("Error: Could not decode VIN. Please enter make, model and year.")
            return 1
        make = make or decoded.make
        model = model or decoded.model
        year = year or decoded.year
        trim = trim or decoded.trim
        print(f"VIN decoded: {decoded.year} {decoded.make} {decoded.model}")

    result = services.garage.add_vehicle(
        user_id,
        make=make,
        model=model,
        year=year,
        mileage=args.mileage,
        vin=args.vin,
        trim=trim,
        nickname=args.nickname,
    )
    vehicle = result.vehicle
    print(f"Added {vehicle.display_name} at {format_miles(vehicle.mileage)} mi.")
    print(f"Maintenance tasks created: {len(result.tasks)}")
    for warning in result.warnings:
        print(f"Warning: {warning}")
    return 0


def cmd_vehicles(args, services: AppServices):
    """List your vehicles."""
    user_id = require_user(services)
    if user_id is None:
        return 1
    vehicles = services.garage.list_vehicles(user_id)
    if not vehicles:
        print("No vehicles yet. Add one with 'maint.py add-vehicle'.")
        return 0
    headers = ["ID", "Vehicle", "Nickname", "Mileage", "VIN"]
    print(tabulate(make_vehicle_table(vehicles), headers=headers, tablefmt="simple"))
    return 0


def cmd_update_miles(args, services: AppServices):
    """Update a vehicle's current mileage."""
    if require_user(services) is None:
        return 1
    mileage = parse_mileage(args.mileage)
    vehicle = services.backend.get_vehicle(args.vehicle_id)
    if vehicle is None:
        print(f"Error: Vehicle not found: {args.vehicle_id}")
        return 1

    print(f"Vehicle: {vehicle.display_name}")
    print(f"Current mileage: {format_miles(vehicle.mileage)}")
    print(f"New mileage:     {format_miles(mileage)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    services.garage.update_mileage(args.vehicle_id, mileage)
    print("Mileage updated.")
    return 0


def cmd_delete_vehicle(args, services: AppServices):
    if require_user(services) is None:
        return 1
    if not args.yes:
        print("Deleting a vehicle also deletes its maintenance schedule.")
        print("Re-run with --yes to confirm.")
        return 1
    services.garage.delete_vehicle(args.vehicle_id)
    print("Vehicle deleted.")
    return 0


# =============================================================================
# Dashboard command
# =============================================================================


def cmd_dashboard(args, services: AppServices):
    """Show overdue and upcoming maintenance across your vehicles."""
    user_id = require_user(services)
    if user_id is None:
        return 1

    limit = None if args.all else services.settings.dashboard.task_limit
    dashboard = services.garage.load_dashboard(user_id, limit=limit)

    if not dashboard.vehicles:
        print("No vehicles yet. Add one with 'maint.py add-vehicle'.")
        return 0

    vehicles = {v.id: v for v in dashboard.vehicles}
    print(f"Vehicles: {len(dashboard.vehicles)}")
    urgent = dashboard.most_urgent
    if urgent is not None:
        label = "Maintenance overdue" if urgent.is_overdue else "Coming up soon"
        print(f"{label}: {urgent.title}")
    print()

    headers = ["Task", "Vehicle", "Priority", "Due (mi)", "Due (date)", "Remaining (mi)"]

    if dashboard.overdue:
        print("OVERDUE:")
        print(
            tabulate(
                make_task_table(dashboard.overdue, vehicles),
                headers=headers,
                tablefmt="simple",
            )
        )
        print()

    if dashboard.upcoming:
        print("UPCOMING:")
        print(
            tabulate(
                make_task_table(dashboard.upcoming, vehicles),
                headers=headers,
                tablefmt="simple",
            )
        )
        print()

    if not dashboard.overdue and not dashboard.upcoming:
        print("No maintenance tasks found.")

    return 0


# =============================================================================
# Registry commands (no backend needed)
# =============================================================================


def cmd_decode_vin(args, registry: NhtsaClient):
    result = registry.decode_vin(args.vin)
    if result is None:
        print("Could not decode VIN. Please enter manually.")
        return 1
    print(f"VIN:   {result.vin}")
    print(f"Make:  {result.make}")
    print(f"Model: {result.model}")
    print(f"Year:  {result.year}")
    if result.trim:
        print(f"Trim:  {result.trim}")
    return 0


def cmd_makes(args, registry: NhtsaClient):
    makes = registry.get_all_makes()
    if args.search:
        makes = [m for m in makes if args.search.lower() in m.make_name.lower()]
    rows = [[m.make_id, m.make_name] for m in sorted(makes, key=lambda m: m.make_name)]
    print(tabulate(rows, headers=["ID", "Make"], tablefmt="simple"))
    return 0


def cmd_models(args, registry: NhtsaClient):
    models = registry.get_models_for_make_year(args.make, args.year)
    if not models:
        print(f"No models found for {args.make} {args.year}.")
        return 0
    for name in sorted(models):
        print(f"  {name}")
    return 0


def cmd_schedule(args, settings: Settings):
    """List the default maintenance schedule."""
    items = list(load_schedule(args.file or settings.schedule_file))
    print(f"Schedule entries: {len(items)}")
    print()
    headers = ["Task", "Category", "Interval", "Priority", "Description"]
    print(tabulate(make_schedule_table(items), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Main
# =============================================================================

BACKEND_COMMANDS = {
    "signup": cmd_signup,
    "signin": cmd_signin,
    "signout": cmd_signout,
    "reset-password": cmd_reset_password,
    "resend-verification": cmd_resend_verification,
    "whoami": cmd_whoami,
    "add-vehicle": cmd_add_vehicle,
    "vehicles": cmd_vehicles,
    "update-miles": cmd_update_miles,
    "delete-vehicle": cmd_delete_vehicle,
    "dashboard": cmd_dashboard,
}

REGISTRY_COMMANDS = {
    "decode-vin": cmd_decode_vin,
    "makes": cmd_makes,
    "models": cmd_models,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle maintenance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s signin me@example.com
  %(prog)s add-vehicle --vin 4S3BMHB68B3286050 --mileage 52000
  %(prog)s add-vehicle --make Subaru --model BRZ --year 2015 --mileage 21216
  %(prog)s dashboard
  %(prog)s update-miles <vehicle-id> 58000
  %(prog)s decode-vin 4S3BMHB68B3286050
  %(prog)s schedule
""",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Account subcommands
    for name, help_text in (
        ("signup", "Create an account"),
        ("signin", "Sign in and store the session"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("email", type=str, help="Account email")
        p.add_argument(
            "--password",
            type=str,
            help="Password (prompted when omitted)",
        )

    subparsers.add_parser("signout", help="Sign out and forget the session")

    for name, help_text in (
        ("reset-password", "Email a password reset link"),
        ("resend-verification", "Resend the sign-up confirmation email"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("email", type=str, help="Account email")

    subparsers.add_parser("whoami", help="Show the signed-in profile")

    # Vehicle subcommands
    add_parser = subparsers.add_parser(
        "add-vehicle", help="Add a vehicle and create its default schedule"
    )
    add_parser.add_argument(
        "--vin", type=str, help="17-character VIN (decoded to fill make/model/year)"
    )
    add_parser.add_argument("--make", type=str, help="Vehicle make")
    add_parser.add_argument("--model", type=str, help="Vehicle model")
    add_parser.add_argument("--year", type=str, help="Model year")
    add_parser.add_argument("--trim", type=str, help="Trim level")
    add_parser.add_argument(
        "--mileage", type=str, required=True, help="Current odometer reading"
    )
    add_parser.add_argument("--nickname", type=str, help="Optional nickname")

    subparsers.add_parser("vehicles", help="List your vehicles")

    update_miles_parser = subparsers.add_parser(
        "update-miles", help="Update a vehicle's current mileage"
    )
    update_miles_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")
    update_miles_parser.add_argument("mileage", type=str, help="Current mileage")
    update_miles_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    delete_parser = subparsers.add_parser(
        "delete-vehicle", help="Delete a vehicle and its maintenance tasks"
    )
    delete_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")
    delete_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    dashboard_parser = subparsers.add_parser(
        "dashboard", help="Show overdue and upcoming maintenance"
    )
    dashboard_parser.add_argument(
        "--all", action="store_true", help="Show every task instead of the top few"
    )

    # Registry subcommands
    vin_parser = subparsers.add_parser("decode-vin", help="Decode a VIN")
    vin_parser.add_argument("vin", type=str, help="17-character VIN")

    makes_parser = subparsers.add_parser("makes", help="List vehicle makes")
    makes_parser.add_argument(
        "--search", type=str, help="Filter makes containing text (case-insensitive)"
    )

    models_parser = subparsers.add_parser("models", help="List models for a make and year")
    models_parser.add_argument("make", type=str, help="Vehicle make")
    models_parser.add_argument("year", type=int, help="Model year")

    schedule_parser = subparsers.add_parser(
        "schedule", help="List the default maintenance schedule"
    )
    schedule_parser.add_argument(
        "--file", type=Path, help="Alternate schedule template YAML"
    )

    return parser


def run(args, settings: Settings) -> int:
    """Dispatch a parsed command to its handler."""
    if args.command == "schedule":
        return cmd_schedule(args, settings)

    if args.command in REGISTRY_COMMANDS:
        registry = NhtsaClient(
            base_url=settings.nhtsa.api_url, timeout=settings.nhtsa.timeout_seconds
        )
        try:
            return REGISTRY_COMMANDS[args.command](args, registry)
        finally:
            registry.close()

    with AppServices.from_settings(settings) as services:
        return BACKEND_COMMANDS[args.command](args, services)


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = Settings.load(args.config)
        return run(args, settings)
    except ValidationError as e:
        print_validation_error(e)
        return 1
    except EmailNotConfirmedError as e:
        print(f"Error: {e.user_message}")
        email = getattr(args, "email", "EMAIL")
        print(f"Run 'maint.py resend-verification {email}' to get a new link.")
        return 1
    except RemoteServiceError as e:
        print(f"Error: {e.user_message}")
        return 1
    except GarageError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)

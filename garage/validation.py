"""Form validation, run before any remote call."""

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Union

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6
VIN_LENGTH = 17
MIN_YEAR = 1900

RawNumber = Union[str, int, None]


@dataclass
class VehicleForm:
    """Parsed and normalized add-vehicle input."""

    make: str
    model: str
    year: int
    mileage: int
    vin: Optional[str] = None
    trim: Optional[str] = None
    nickname: Optional[str] = None


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_email(email: Optional[str], errors: Dict[str, str]) -> None:
    if _blank(email):
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.search(email):
        errors["email"] = "Email is invalid"


def _check_password(password: Optional[str], errors: Dict[str, str]) -> None:
    if not password:
        errors["password"] = "Password is required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = (
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


def _raise_if_any(errors: Dict[str, str]) -> None:
    if errors:
        raise ValidationError(errors)


def validate_email_only(email: Optional[str]) -> str:
    errors: Dict[str, str] = {}
    _check_email(email, errors)
    _raise_if_any(errors)
    return email.strip()


def validate_sign_in(email: Optional[str], password: Optional[str]) -> str:
    """Validate sign-in input and return the trimmed email."""
    errors: Dict[str, str] = {}
    _check_email(email, errors)
    _check_password(password, errors)
    _raise_if_any(errors)
    return email.strip()


def validate_sign_up(
    email: Optional[str], password: Optional[str], confirm_password: Optional[str]
) -> str:
    """Validate sign-up input and return the trimmed email."""
    errors: Dict[str, str] = {}
    _check_email(email, errors)
    _check_password(password, errors)
    if not confirm_password:
        errors["confirm_password"] = "Please confirm your password"
    elif password != confirm_password:
        errors["confirm_password"] = "Passwords do not match"
    _raise_if_any(errors)
    return email.strip()


def validate_vin(vin: Optional[str]) -> str:
    vin = (vin or "").strip().upper()
    if len(vin) != VIN_LENGTH:
        raise ValidationError({"vin": f"VIN must be {VIN_LENGTH} characters"})
    return vin


def _parse_int(value: RawNumber) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_mileage(mileage: RawNumber) -> int:
    """Parse an odometer reading. Must be a non-negative integer."""
    value = None if _blank(mileage) else _parse_int(mileage)
    if value is None or value < 0:
        raise ValidationError({"mileage": "Please enter a valid mileage"})
    return value


def parse_vehicle_form(
    make: Optional[str],
    model: Optional[str],
    year: RawNumber,
    mileage: RawNumber,
    vin: Optional[str] = None,
    nickname: Optional[str] = None,
    today: Optional[date] = None,
    trim: Optional[str] = None,
) -> VehicleForm:
    """
    Validate add-vehicle input.

    make, model, year and mileage are required. Year must fall between
    1900 and next year; mileage must be a non-negative integer. Blank
    vin, trim and nickname become None.
    """
    if any(_blank(v) for v in (make, model, year, mileage)):
        raise ValidationError({"form": "Please fill in all required fields"})

    today = today or date.today()
    year_num = _parse_int(year)
    if year_num is None or year_num < MIN_YEAR or year_num > today.year + 1:
        raise ValidationError({"year": "Please enter a valid year"})

    mileage_num = parse_mileage(mileage)
    vin_value = None if _blank(vin) else validate_vin(vin)

    return VehicleForm(
        make=make.strip(),
        model=model.strip(),
        year=year_num,
        mileage=mileage_num,
        vin=vin_value,
        trim=None if _blank(trim) else trim.strip(),
        nickname=None if _blank(nickname) else nickname.strip(),
    )

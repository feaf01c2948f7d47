"""Vehicle and User records owned by the backend."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Vehicle:
    """A user's vehicle. Owns its maintenance tasks."""

    user_id: str
    make: str
    model: str
    year: int
    mileage: int
    vin: Optional[str] = None
    trim: Optional[str] = None
    nickname: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def name(self) -> str:
        """Year, make and model, e.g. '2015 Subaru BRZ'."""
        base = f"{self.year} {self.make} {self.model}"
        return f"{base} {self.trim}" if self.trim else base

    @property
    def display_name(self) -> str:
        if self.nickname:
            return f'"{self.nickname}" ({self.name})'
        return self.name


@dataclass
class User:
    """Account profile stored in the users table."""

    id: str
    email: str
    is_premium: bool = False
    created_at: Optional[datetime] = None

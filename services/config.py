"""
Application settings.

Loads config/settings.yaml (or the file named by MAINT_TRACKER_CONFIG),
then applies environment overrides. A .env file in the project root is
read first.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from garage.errors import ConfigError

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_SESSION_FILE = Path.home() / ".maint-tracker" / "session.yaml"


class SupabaseSettings(BaseModel):
    """Backend project connection settings."""
    url: str = ""
    anon_key: str = ""


class NhtsaSettings(BaseModel):
    """VIN registry settings."""
    api_url: str = "https://vpic.nhtsa.dot.gov/api"
    timeout_seconds: float = 15.0


class DashboardSettings(BaseModel):
    task_limit: int = Field(10, ge=0)


class Settings(BaseModel):
    """Top-level application settings."""
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    nhtsa: NhtsaSettings = Field(default_factory=NhtsaSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    session_file: Path = DEFAULT_SESSION_FILE
    schedule_file: Optional[Path] = None

    @classmethod
    def load(cls, path: Optional[Path] = None) -> Settings:
        """Load settings from YAML, falling back to defaults, then apply env vars."""
        load_dotenv(PROJECT_ROOT / ".env")

        if path is None:
            env_path = os.getenv("MAINT_TRACKER_CONFIG")
            path = Path(env_path) if env_path else CONFIG_DIR / "settings.yaml"

        data = {}
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        try:
            settings = cls(**data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid settings in {path}: {e}") from e

        url = os.getenv("SUPABASE_URL")
        if url:
            settings.supabase.url = url
        key = os.getenv("SUPABASE_ANON_KEY")
        if key:
            settings.supabase.anon_key = key
        session_file = os.getenv("MAINT_TRACKER_SESSION_FILE")
        if session_file:
            settings.session_file = Path(session_file)
        return settings

    def require_supabase(self) -> SupabaseSettings:
        """Return the backend settings, or raise if they are incomplete."""
        if not self.supabase.url or not self.supabase.anon_key:
            raise ConfigError(
                "SUPABASE_URL / SUPABASE_ANON_KEY must be set in the environment, "
                ".env, or config/settings.yaml"
            )
        return self.supabase

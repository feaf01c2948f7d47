"""Explicit construction of the service graph, tied to application startup/shutdown."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from supabase import create_client

from garage.loader import load_schedule

from .auth import AuthService, SessionStore
from .backend import BackendClient
from .config import Settings
from .garage_service import GarageService
from .nhtsa import NhtsaClient

logger = logging.getLogger(__name__)


class AppServices:
    """Owns the backend client, HTTP session and the services built on them.

    Use as a context manager so the HTTP session is closed on exit.
    """

    def __init__(
        self,
        settings: Settings,
        supabase_client: Any,
        http_session: Optional[requests.Session] = None,
    ):
        self.settings = settings
        self.supabase = supabase_client
        self.backend = BackendClient(supabase_client)
        self.sessions = SessionStore(settings.session_file)
        self.auth = AuthService(supabase_client, self.backend, self.sessions)
        self.registry = NhtsaClient(
            session=http_session,
            base_url=settings.nhtsa.api_url,
            timeout=settings.nhtsa.timeout_seconds,
        )
        self.garage = GarageService(self.backend, load_schedule(settings.schedule_file))

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> AppServices:
        """Connect to the configured backend and build every service."""
        settings = settings or Settings.load()
        supabase_settings = settings.require_supabase()
        client = create_client(supabase_settings.url, supabase_settings.anon_key)
        logger.info("Connected to backend: %s", supabase_settings.url)
        return cls(settings, client)

    def close(self) -> None:
        self.registry.close()

    def __enter__(self) -> AppServices:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

"""External collaborators and application wiring for the maintenance tracker."""

from .auth import AuthService, SessionStore, StoredSession
from .backend import BackendClient
from .config import Settings
from .context import AppServices
from .garage_service import AddVehicleResult, Dashboard, GarageService
from .nhtsa import MakeInfo, NhtsaClient, VinDecodeResult

__all__ = [
    "AddVehicleResult",
    "AppServices",
    "AuthService",
    "BackendClient",
    "Dashboard",
    "GarageService",
    "MakeInfo",
    "NhtsaClient",
    "SessionStore",
    "Settings",
    "StoredSession",
    "VinDecodeResult",
]

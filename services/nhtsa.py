"""Client for the NHTSA vPIC vehicle registry (VIN decoding, makes, models)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from garage.errors import RegistryError
from garage.validation import validate_vin

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://vpic.nhtsa.dot.gov/api"


@dataclass
class VinDecodeResult:
    make: str
    model: str
    year: int
    vin: str
    trim: Optional[str] = None


@dataclass
class MakeInfo:
    make_id: int
    make_name: str


def _variable(results: List[Dict[str, Any]], name: str) -> Optional[str]:
    """Value of a DecodeVin result variable, or None when absent or blank."""
    for entry in results:
        if entry.get("Variable") == name:
            value = entry.get("Value")
            if value is None:
                return None
            value = str(value).strip()
            return value or None
    return None


class NhtsaClient:
    """Thin wrapper over the vPIC JSON API. No retries."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
    ):
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _fetch(self, path: str) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params={"format": "json"}, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            logger.error("NHTSA request failed for %s: %s", path, e)
            raise RegistryError(str(e)) from e
        except ValueError as e:
            logger.error("NHTSA returned invalid JSON for %s: %s", path, e)
            raise RegistryError("Invalid response from vehicle registry") from e

    def decode_vin(self, vin: str) -> Optional[VinDecodeResult]:
        """
        Decode a VIN into make/model/year.

        Returns None when the registry does not know make, model and year.
        """
        vin = validate_vin(vin)
        data = self._fetch(f"/vehicles/DecodeVin/{quote(vin)}")
        results = data.get("Results") or []
        if not results:
            return None

        make = _variable(results, "Make")
        model = _variable(results, "Model")
        year_str = _variable(results, "Model Year")
        try:
            year = int(year_str) if year_str else None
        except ValueError:
            year = None

        if not make or not model or not year:
            logger.info("VIN %s... not found in registry", vin[:8])
            return None

        return VinDecodeResult(
            make=make,
            model=model,
            year=year,
            vin=vin,
            trim=_variable(results, "Trim"),
        )

    def get_all_makes(self) -> List[MakeInfo]:
        data = self._fetch("/vehicles/GetAllMakes")
        return [
            MakeInfo(make_id=r["Make_ID"], make_name=r["Make_Name"])
            for r in data.get("Results") or []
        ]

    def get_models_for_make_year(self, make: str, year: int) -> List[str]:
        """Model names a make produced in a model year."""
        data = self._fetch(
            f"/vehicles/GetModelsForMakeYear/make/{quote(make)}/modelyear/{int(year)}"
        )
        return [r["Model_Name"] for r in data.get("Results") or []]

    def close(self) -> None:
        self.session.close()

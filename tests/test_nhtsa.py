#!/usr/bin/env python3
"""Tests for the NHTSA vPIC client."""
from unittest.mock import MagicMock

import pytest
import requests

from garage import RegistryError, ValidationError
from services.nhtsa import MakeInfo, NhtsaClient

VIN = "4S3BMHB68B3286050"


def decode_payload(make="SUBARU", model="Legacy", year="2011", trim="2.5i"):
    return {
        "Count": 4,
        "Results": [
            {"Variable": "Make", "Value": make},
            {"Variable": "Model", "Value": model},
            {"Variable": "Model Year", "Value": year},
            {"Variable": "Trim", "Value": trim},
        ],
    }


def make_client(payload=None, error=None):
    session = MagicMock()
    session.headers = {}
    response = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        response.json.return_value = payload
    session.get.return_value = response
    return NhtsaClient(session=session, base_url="https://vpic.example/api/"), session


class TestDecodeVin:
    """Tests for NhtsaClient.decode_vin."""

    def test_decodes(self):
        client, session = make_client(decode_payload())

        result = client.decode_vin(VIN.lower())

        assert result.make == "SUBARU"
        assert result.model == "Legacy"
        assert result.year == 2011
        assert result.trim == "2.5i"
        assert result.vin == VIN
        session.get.assert_called_once_with(
            f"https://vpic.example/api/vehicles/DecodeVin/{VIN}",
            params={"format": "json"},
            timeout=15.0,
        )

    def test_sets_accept_header(self):
        _, session = make_client(decode_payload())
        assert session.headers["Accept"] == "application/json"

    def test_blank_trim(self):
        client, _ = make_client(decode_payload(trim=" "))
        assert client.decode_vin(VIN).trim is None

    @pytest.mark.parametrize(
        "payload",
        [
            decode_payload(make=""),
            decode_payload(model=None),
            decode_payload(year="not a year"),
            {"Results": []},
            {},
        ],
    )
    def test_not_found(self, payload):
        client, _ = make_client(payload)
        assert client.decode_vin(VIN) is None

    def test_invalid_vin_makes_no_request(self):
        client, session = make_client(decode_payload())
        with pytest.raises(ValidationError, match="17 characters"):
            client.decode_vin("ABC")
        session.get.assert_not_called()

    def test_network_failure(self):
        client, _ = make_client(error=requests.ConnectionError("down"))
        with pytest.raises(RegistryError):
            client.decode_vin(VIN)

    def test_http_error_status(self):
        client, session = make_client(decode_payload())
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("503")
        with pytest.raises(RegistryError):
            client.decode_vin(VIN)

    def test_invalid_json(self):
        client, session = make_client()
        session.get.return_value.json.side_effect = ValueError("no json")
        with pytest.raises(RegistryError, match="Invalid response"):
            client.decode_vin(VIN)


class TestMakesAndModels:
    def test_get_all_makes(self):
        client, session = make_client(
            {"Results": [{"Make_ID": 523, "Make_Name": "SUBARU"}]}
        )
        assert client.get_all_makes() == [MakeInfo(make_id=523, make_name="SUBARU")]
        assert session.get.call_args[0][0].endswith("/vehicles/GetAllMakes")

    def test_get_models_for_make_year(self):
        client, session = make_client(
            {"Results": [{"Model_Name": "BRZ"}, {"Model_Name": "WRX"}]}
        )
        assert client.get_models_for_make_year("Subaru", "2015") == ["BRZ", "WRX"]
        assert session.get.call_args[0][0].endswith(
            "/vehicles/GetModelsForMakeYear/make/Subaru/modelyear/2015"
        )

    def test_close(self):
        client, session = make_client({})
        client.close()
        session.close.assert_called_once_with()

"""Tests for the ecobee API client."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_response
from weatherhvac.ecobee_client import EcobeeClient
from weatherhvac.exceptions import ThermostatAPIError
from weatherhvac.models import OperatingMode, ThermostatMeta, Tokens

STATUS_BODY = {
    "thermostatList": [
        {
            "identifier": "111",
            "name": "Upstairs",
            "settings": {"hvacMode": "heat"},
            "runtime": {"actualTemperature": 684, "actualHumidity": 38},
        },
        {
            "identifier": "333",
            "name": "Basement",
            "settings": {"hvacMode": "heat"},
            "runtime": {"actualTemperature": 650, "actualHumidity": 50},
        },
    ]
}

OK_BODY = {"status": {"code": 0, "message": ""}}


@pytest.fixture
def client(authorized_store):
    client = EcobeeClient(authorized_store)
    client.session = MagicMock()
    return client


def test_authorize_stores_code(client, authorized_store):
    client.session.request.return_value = make_response({
        "ecobeePin": "ABCD",
        "expires_in": 9,
        "code": "auth-code",
        "scope": "smartWrite",
        "interval": 30,
    })

    auth = client.authorize()

    assert auth.ecobee_pin == "ABCD"
    assert authorized_store.load_tokens() == Tokens(access_token="auth-code", refresh_token="")
    method, url = client.session.request.call_args.args
    assert (method, url) == ("GET", "https://api.ecobee.com/authorize")
    assert client.session.request.call_args.kwargs["params"] == {
        "response_type": "ecobeePin",
        "client_id": "app-key",
        "scope": "smartWrite",
    }


def test_refresh_tokens_uses_refresh_token(client, authorized_store):
    client.session.request.return_value = make_response({
        "access_token": "access-2",
        "token_type": "Bearer",
        "expires_in": 3599,
        "refresh_token": "refresh-2",
        "scope": "smartWrite",
    })

    client.refresh_tokens()

    params = client.session.request.call_args.kwargs["params"]
    assert params == {"grant_type": "refresh_token", "client_id": "app-key", "refresh_token": "refresh-1"}
    assert authorized_store.load_tokens() == Tokens(access_token="access-2", refresh_token="refresh-2")


def test_get_tokens_with_code(client, authorized_store):
    authorized_store.write_tokens(Tokens(access_token="auth-code"))
    client.session.request.return_value = make_response({
        "access_token": "a",
        "expires_in": 3599,
        "refresh_token": "r",
    })

    client.get_tokens_with_code()

    params = client.session.request.call_args.kwargs["params"]
    assert params["grant_type"] == "ecobeePin"
    assert params["code"] == "auth-code"


def test_bad_grant_type(client):
    with pytest.raises(ValueError):
        client.fetch_tokens("x", "password")


def test_failed_refresh_keeps_tokens(client, authorized_store):
    client.session.request.return_value = make_response(status_code=500, text="boom")

    with pytest.raises(ThermostatAPIError, match="500"):
        client.refresh_tokens()

    assert authorized_store.load_tokens().refresh_token == "refresh-1"


def test_transport_error(client):
    client.session.request.side_effect = requests.exceptions.ConnectionError("no route")

    with pytest.raises(ThermostatAPIError, match="Transport error"):
        client.refresh_tokens()


def test_status_refreshes_registry(client, authorized_store):
    client.session.request.return_value = make_response(STATUS_BODY)

    thermostats = client.thermostat_status()

    assert [t.mode for t in thermostats] == [OperatingMode.HEAT, OperatingMode.HEAT]
    assert thermostats[0].actual_temperature == 68.4
    assert authorized_store.load_thermostats() == [
        ThermostatMeta("111", "Upstairs"),
        ThermostatMeta("333", "Basement"),
    ]
    kwargs = client.session.request.call_args.kwargs
    assert kwargs["headers"]["Authorization"] == "Bearer access-1"
    assert json.loads(kwargs["params"]["json"])["selection"]["selectionType"] == "registered"


def test_status_reads_tokens_every_call(client, authorized_store):
    client.session.request.return_value = make_response(STATUS_BODY)
    client.thermostat_status()

    authorized_store.write_tokens(Tokens(access_token="access-9", refresh_token="refresh-9"))
    client.thermostat_status()

    assert client.session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer access-9"


def test_invalid_status_body(client, authorized_store):
    client.session.request.return_value = make_response({"thermostatList": [{"name": "no id"}]})

    with pytest.raises(ThermostatAPIError):
        client.thermostat_status()

    assert len(authorized_store.load_thermostats()) == 2


def test_update_thermostat_selects_one(client):
    client.session.request.return_value = make_response(OK_BODY)

    client.update_thermostat("111", OperatingMode.COOL)

    body = client.session.request.call_args.kwargs["json"]
    assert body["selection"] == {"selectionType": "thermostats", "selectionMatch": "111"}
    assert body["thermostat"]["settings"]["hvacMode"] == "cool"


def test_update_rejects_inconsistent(client):
    with pytest.raises(ValueError):
        client.update_thermostat("111", OperatingMode.INCONSISTENT)


def test_update_reports_vendor_error(client):
    client.session.request.return_value = make_response({"status": {"code": 3, "message": "Processing error"}})

    with pytest.raises(ThermostatAPIError, match="Processing error"):
        client.update_thermostat("111", OperatingMode.OFF)


def test_update_thermostats_one_request_each(client):
    client.session.request.side_effect = [
        make_response(status_code=500, text="down"),
        make_response(OK_BODY),
    ]

    results = client.update_thermostats(OperatingMode.HEAT)

    assert results == {"111": False, "222": True}
    assert client.session.request.call_count == 2
    matches = [c.kwargs["json"]["selection"]["selectionMatch"] for c in client.session.request.call_args_list]
    assert matches == ["111", "222"]

"""Shared fixtures for weatherhvac tests."""

from unittest.mock import MagicMock

import pytest
import requests

from weatherhvac.exceptions import ThermostatAPIError
from weatherhvac.models import OperatingMode, ThermostatMeta, ThermostatStatus, Tokens
from weatherhvac.settings import ThresholdConfig, Unit
from weatherhvac.storage import ConfigStore


class FakeEcobee:
    """Stand-in for EcobeeClient that records calls."""

    def __init__(self, modes=("off",), fail_refresh=False, fail_status=False):
        self.modes = [OperatingMode(m) for m in modes]
        self.fail_refresh = fail_refresh
        self.fail_status = fail_status
        self.refresh_calls = 0
        self.status_calls = 0
        self.updates: list[OperatingMode] = []

    def refresh_tokens(self):
        self.refresh_calls += 1
        if self.fail_refresh:
            raise ThermostatAPIError("refresh rejected")

    def thermostat_status(self):
        self.status_calls += 1
        if self.fail_status:
            raise ThermostatAPIError("status unavailable")
        return [
            ThermostatStatus(identifier=f"t{i}", name=f"Thermostat {i}", mode=mode, actual_temperature=70.0)
            for i, mode in enumerate(self.modes)
        ]

    def update_thermostats(self, mode):
        self.updates.append(mode)
        return {f"t{i}": True for i in range(len(self.modes))}


class FakeWeather:
    """Returns queued readings; queued exceptions are raised instead."""

    def __init__(self, readings):
        self.readings = list(readings)
        self.calls = 0

    def get_temperature(self, api_key, query, unit):
        self.calls += 1
        reading = self.readings.pop(0)
        if isinstance(reading, Exception):
            raise reading
        return reading


@pytest.fixture
def store(tmp_path):
    store = ConfigStore(tmp_path / "config")
    store.ensure_dir()
    return store


@pytest.fixture
def authorized_store(store):
    store.write_app_key("app-key")
    store.write_tokens(Tokens(access_token="access-1", refresh_token="refresh-1"))
    store.write_thermostats([
        ThermostatMeta(identifier="111", name="Upstairs"),
        ThermostatMeta(identifier="222", name="Downstairs"),
    ])
    return store


@pytest.fixture
def settings():
    return ThresholdConfig(
        api_key="weather-key",
        query="10001",
        unit=Unit.IMPERIAL,
        cool_above=78.0,
        heat_below=60.0,
        interval_minutes=15,
    )


def make_response(data=None, status_code=200, text=""):
    """Mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    if isinstance(data, Exception):
        response.json.side_effect = data
    else:
        response.json.return_value = data
    return response



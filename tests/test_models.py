"""Tests for models and settings parsing."""

import pytest

from weatherhvac.models import OperatingMode, StatusResponse, aggregate_mode
from weatherhvac.settings import ThresholdConfig, Unit

HEAT = OperatingMode.HEAT
COOL = OperatingMode.COOL
OFF = OperatingMode.OFF


@pytest.mark.parametrize(
    "modes, expected",
    [
        ([HEAT, HEAT, HEAT], HEAT),
        ([HEAT, COOL], OperatingMode.INCONSISTENT),
        ([COOL, HEAT], OperatingMode.INCONSISTENT),
        ([OFF], OFF),
        ([OFF, OFF, HEAT, OFF], OperatingMode.INCONSISTENT),
        ([], OperatingMode.INCONSISTENT),
    ],
)
def test_aggregate_mode(modes, expected):
    assert aggregate_mode(modes) is expected


def test_aggregate_mode_accepts_generator():
    assert aggregate_mode(m for m in [COOL, COOL]) is COOL


def test_unknown_api_mode_is_inconsistent():
    assert OperatingMode.from_api("auxHeatOnly") is OperatingMode.INCONSISTENT
    assert OperatingMode.from_api("Heat") is HEAT
    assert not OperatingMode.INCONSISTENT.settable


def test_status_response_to_status():
    response = StatusResponse.model_validate({
        "thermostatList": [
            {
                "identifier": "311000000001",
                "name": "Living Room",
                "settings": {"hvacMode": "cool"},
                "runtime": {"actualTemperature": 715, "actualHumidity": 42},
            }
        ]
    })

    status = response.thermostats[0].to_status()

    assert status.identifier == "311000000001"
    assert status.mode is COOL
    assert status.actual_temperature == 71.5
    assert status.actual_humidity == 42


def test_status_runtime_ignores_setpoints():
    response = StatusResponse.model_validate({
        "thermostatList": [
            {
                "identifier": "311000000002",
                "name": "Bedroom",
                "settings": {"hvacMode": "heat"},
                "runtime": {
                    "actualTemperature": 688,
                    "actualHumidity": 38,
                    "desiredHeat": 690,
                    "desiredCool": 760,
                },
            }
        ]
    })

    status = response.thermostats[0].to_status()

    assert status.mode is OperatingMode.HEAT
    assert status.actual_temperature == 68.8
    assert not hasattr(response.thermostats[0].runtime, "desired_heat")


def test_threshold_config_from_camel_case():
    config = ThresholdConfig.from_dict({
        "apiKey": "k",
        "coolAbove": 30,
        "heatBelow": "5",
        "intervalMinutes": 10,
        "unit": "metric",
        "somethingElse": True,
    })

    assert config.api_key == "k"
    assert config.cool_above == 30.0
    assert config.heat_below == 5.0
    assert config.interval_minutes == 10
    assert config.unit is Unit.METRIC


def test_threshold_config_defaults_to_imperial():
    assert ThresholdConfig.from_dict(None).unit is Unit.IMPERIAL
    assert ThresholdConfig.from_dict({"metric": None}).unit is Unit.IMPERIAL


def test_interval_seconds():
    assert ThresholdConfig(interval_minutes=5).interval_seconds == 300
    assert ThresholdConfig().interval_seconds is None

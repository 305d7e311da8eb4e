"""
weatherhvac Data Models

Thermostat state, tokens and the wire formats of the ecobee and weather APIs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class OperatingMode(str, Enum):
    """HVAC mode as reported by (or sent to) a thermostat."""

    HEAT = "heat"
    COOL = "cool"
    OFF = "off"
    # Observed only: thermostats disagree. Never a target.
    INCONSISTENT = "inconsistent"

    @classmethod
    def from_api(cls, value: str) -> "OperatingMode":
        """Map an ecobee hvacMode string to a mode.

        Modes outside heat/cool/off (auto, auxHeatOnly) can't be compared
        against a target, so they are reported as inconsistent.
        """
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.INCONSISTENT

    @property
    def settable(self) -> bool:
        return self is not OperatingMode.INCONSISTENT


@dataclass
class Tokens:
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str = ""


@dataclass
class ThermostatMeta:
    """Registered thermostat identifier and display name."""

    identifier: str
    name: str


@dataclass
class ThermostatStatus:
    """Current status of a single thermostat."""

    identifier: str
    name: str
    mode: OperatingMode
    actual_temperature: Optional[float] = None
    actual_humidity: Optional[float] = None

    @property
    def meta(self) -> ThermostatMeta:
        return ThermostatMeta(identifier=self.identifier, name=self.name)


def aggregate_mode(modes: Iterable[OperatingMode]) -> OperatingMode:
    """Collapse per-thermostat modes into one.

    All identical -> that mode, anything else (including no thermostats
    at all) -> INCONSISTENT.
    """
    distinct = set(modes)
    if len(distinct) == 1:
        return distinct.pop()
    return OperatingMode.INCONSISTENT


# ecobee API responses


class AuthorizeResponse(BaseModel):
    """Response of the PIN authorization request."""

    model_config = ConfigDict(populate_by_name=True)

    ecobee_pin: str = Field(alias="ecobeePin")
    expires_in: int  # minutes
    code: str
    scope: str
    interval: int  # minimum seconds between token polls


class TokenResponse(BaseModel):
    """Response of the token (and token refresh) request."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    refresh_token: str
    scope: str = ""


class _ThermostatSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hvac_mode: str = Field(alias="hvacMode")


class _ThermostatRuntime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    actual_temperature: Optional[float] = Field(default=None, alias="actualTemperature")
    actual_humidity: Optional[float] = Field(default=None, alias="actualHumidity")


class _Thermostat(BaseModel):
    identifier: str
    name: str
    settings: _ThermostatSettings
    runtime: Optional[_ThermostatRuntime] = None

    def to_status(self) -> ThermostatStatus:
        temperature = None
        humidity = None
        if self.runtime is not None:
            # ecobee reports temperatures in tenths of a degree
            if self.runtime.actual_temperature is not None:
                temperature = self.runtime.actual_temperature / 10.0
            humidity = self.runtime.actual_humidity
        return ThermostatStatus(
            identifier=self.identifier,
            name=self.name,
            mode=OperatingMode.from_api(self.settings.hvac_mode),
            actual_temperature=temperature,
            actual_humidity=humidity,
        )


class StatusResponse(BaseModel):
    """Response of the thermostat status request."""

    model_config = ConfigDict(populate_by_name=True)

    thermostats: list[_Thermostat] = Field(default_factory=list, alias="thermostatList")


class _ResponseStatus(BaseModel):
    code: int
    message: str = ""


class UpdateResponse(BaseModel):
    """Response of a thermostat update request."""

    status: _ResponseStatus


# weatherapi.com responses


class _CurrentWeather(BaseModel):
    temp_c: Optional[float] = None
    temp_f: Optional[float] = None


class WeatherResponse(BaseModel):
    """Current conditions returned by weatherapi.com."""

    current: _CurrentWeather

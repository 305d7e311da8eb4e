"""
Weather Control Service

Background loop that keeps every thermostat's HVAC mode in line with the
outdoor temperature. Each interval it reads the temperature, compares it with
the configured thresholds and, when a change is needed, sets the new mode on
all registered thermostats.

Upstream failures (token refresh, weather fetch, single thermostat updates) are
logged and the loop carries on with the next interval.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .ecobee_client import EcobeeClient
from .exceptions import ConfigurationError, ThermostatAPIError, WeatherAPIError
from .models import OperatingMode, aggregate_mode
from .settings import ThresholdConfig
from .weather_client import WeatherClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlState:
    """State carried from one tick to the next."""

    current_mode: OperatingMode


def decide_target(
    temperature: float,
    current_mode: OperatingMode,
    settings: ThresholdConfig,
) -> Optional[OperatingMode]:
    """Pick the mode to switch to, if any.

    Rules are checked in a fixed order and the first match wins:
    cool above, off above, heat below, off below. Above-threshold rules come
    before below-threshold ones, and comfort rules before their off rule.

    Args:
        temperature: Outdoor temperature
        current_mode: Mode the thermostats are believed to be in
        settings: Thresholds

    Returns:
        Target mode, or None to leave the thermostats alone
    """
    if settings.cool_above is not None and temperature > settings.cool_above and current_mode != OperatingMode.COOL:
        return OperatingMode.COOL
    elif settings.off_above is not None and temperature > settings.off_above and current_mode != OperatingMode.OFF:
        return OperatingMode.OFF
    elif settings.heat_below is not None and temperature < settings.heat_below and current_mode != OperatingMode.HEAT:
        return OperatingMode.HEAT
    elif settings.off_below is not None and temperature < settings.off_below and current_mode != OperatingMode.OFF:
        return OperatingMode.OFF
    return None


class WeatherControlService:
    """
    Weather driven HVAC mode control.

    Startup seeds the current mode from live thermostat status. After that
    the mode only changes when this service sets it.
    """

    def __init__(
        self,
        ecobee: EcobeeClient,
        weather: WeatherClient,
        settings: ThresholdConfig,
    ):
        if settings.interval_minutes is None:
            raise ConfigurationError("Interval is not set. Run --weather-setup before proceeding.")
        if settings.interval_minutes < 1:
            raise ConfigurationError(
                f"Interval must be at least one minute, got {settings.interval_minutes}. Run --weather-setup."
            )

        self.ecobee = ecobee
        self.weather = weather
        self.settings = settings
        self.interval_minutes = settings.interval_minutes

        self.state: Optional[ControlState] = None
        self._task: asyncio.Task | None = None
        self._running = False

    def _refresh_tokens(self) -> bool:
        try:
            self.ecobee.refresh_tokens()
            return True
        except ThermostatAPIError as e:
            logger.error(f"Token refresh failed: {e}")
            return False

    def initialize(self) -> ControlState:
        """Refresh tokens and read the current mode from the thermostats.

        If status can't be read the mode is treated as inconsistent, so the
        first decision is applied whatever it is.
        """
        self._refresh_tokens()
        try:
            thermostats = self.ecobee.thermostat_status()
            mode = aggregate_mode(t.mode for t in thermostats)
        except ThermostatAPIError as e:
            logger.error(f"Could not read thermostat status: {e}")
            mode = OperatingMode.INCONSISTENT

        logger.info(
            f"Initializing weather loop @ {datetime.now().isoformat(timespec='seconds')} "
            f"checking every {self.interval_minutes} minutes. Current hvac mode is {mode.value}"
        )
        return ControlState(current_mode=mode)

    def read_temperature(self) -> float:
        """Refresh tokens and read the outdoor temperature.

        Raises:
            WeatherAPIError: If the temperature can't be read
        """
        self._refresh_tokens()
        return self.weather.get_temperature(self.settings.api_key, self.settings.query, self.settings.unit)

    def apply(self, target: OperatingMode) -> dict[str, bool]:
        """Refresh tokens and set target on every registered thermostat."""
        self._refresh_tokens()
        results = self.ecobee.update_thermostats(target)
        failed = [identifier for identifier, ok in results.items() if not ok]
        if failed:
            logger.warning(f"{len(failed)} of {len(results)} thermostat(s) not updated: {failed}")
        return results

    def tick(self, state: ControlState) -> ControlState:
        """Run one sample and decide step.

        Args:
            state: State from the previous tick

        Returns:
            State for the next tick
        """
        try:
            temperature = self.read_temperature()
        except WeatherAPIError as e:
            logger.error(f"Skipping check: {e}")
            return state

        timestamp = datetime.now().isoformat(timespec="seconds")
        logger.info(f"Checking temp ({temperature}) @ {timestamp}")

        target = decide_target(temperature, state.current_mode, self.settings)
        if target is None:
            logger.debug(f"No change, hvac mode stays {state.current_mode.value}")
            return state

        logger.info(
            f"Current temp: {temperature} current mode: {state.current_mode.value} "
            f"- change to {target.value} @ {timestamp}"
        )
        self.apply(target)
        # Set optimistically, per thermostat failures are only logged
        return replace(state, current_mode=target)

    async def run_forever(self):
        """Initialize, then tick every interval until cancelled.

        Upstream failures are absorbed inside tick(). StorageError is not,
        a broken config directory stops the loop.
        """
        self.state = self.initialize()

        while True:
            self.state = self.tick(self.state)

            # Sleep until next interval
            await asyncio.sleep(self.settings.interval_seconds)

    async def start(self):
        """Start the weather control loop as a background task."""
        if self._running:
            logger.warning("Weather control service already running")
            return

        self._running = True
        self._task = asyncio.create_task(self.run_forever())
        self._task.add_done_callback(self._on_task_done)
        logger.info(f"Weather control service started, interval: {self.interval_minutes} minutes")

    def _on_task_done(self, task: asyncio.Task) -> None:
        # Any exit, including a crash, allows start() again
        self._running = False
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Weather control loop stopped: {task.exception()}")

    async def stop(self):
        """Stop the weather control loop."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Weather control service stopped")


def check_weather(weather: WeatherClient, settings: ThresholdConfig) -> float:
    """One-shot temperature read using the stored weather settings."""
    return weather.get_temperature(settings.api_key, settings.query, settings.unit)

"""weatherhvac bulk thermostat control package."""

# Define public API
__all__ = [
    "ThresholdConfig",
    "Unit",
    "OperatingMode",
    "ThermostatStatus",
    "ConfigStore",
    "EcobeeClient",
    "WeatherClient",
    "WeatherControlService",
    "decide_target",
    "validate_settings",
]

# Import settings
from .settings import ThresholdConfig, Unit
from .validation import validate_settings

# Import models
from .models import OperatingMode, ThermostatStatus

# Import storage and API clients
from .storage import ConfigStore
from .ecobee_client import EcobeeClient
from .weather_client import WeatherClient

# Import control loop
from .control import WeatherControlService, decide_target

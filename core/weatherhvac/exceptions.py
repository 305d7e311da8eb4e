"""
weatherhvac Custom Exceptions

Simple exception hierarchy for error handling.
"""


class WeatherHVACError(Exception):
    """Base exception for weatherhvac."""

    pass


class ConfigurationError(WeatherHVACError):
    """Configuration is missing or invalid."""

    pass


class StorageError(WeatherHVACError):
    """Local credential, registry or settings files are unusable."""

    pass


class ThermostatAPIError(WeatherHVACError):
    """Request to the ecobee API failed."""

    pass


class WeatherAPIError(WeatherHVACError):
    """Temperature could not be read from the weather API."""

    pass

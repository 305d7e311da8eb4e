"""
Simple weatherapi.com client

Reads the current outdoor temperature for a location.
"""

import logging
from typing import Optional

import requests

from .exceptions import WeatherAPIError
from .models import WeatherResponse
from .settings import Unit

logger = logging.getLogger(__name__)

WEATHER_URL = "https://api.weatherapi.com/v1/current.json"


class WeatherClient:
    """weatherapi.com current conditions client."""

    def __init__(self, url: str = WEATHER_URL, timeout: Optional[float] = None):
        self.url = url
        self.session = requests.Session()
        self.timeout = timeout

    def get_temperature(self, api_key: Optional[str], query: Optional[str], unit: Unit) -> float:
        """Get the current temperature.

        Args:
            api_key: weatherapi.com key
            query: Location (zip code, city name, "lat,long")
            unit: METRIC reads temp_c, IMPERIAL reads temp_f

        Returns:
            Current temperature in the requested unit

        Raises:
            WeatherAPIError: If the request fails or the reading is missing
        """
        if not api_key or not query:
            raise WeatherAPIError("Weather API key or query unset. Run --weather-setup.")

        try:
            response = self.session.post(
                self.url,
                params={"key": api_key, "q": query},
                timeout=self.timeout,
            )
            response.raise_for_status()
            weather = WeatherResponse.model_validate(response.json())
        except requests.exceptions.HTTPError as e:
            raise WeatherAPIError(
                f"Weather request failed: {e.response.status_code}\n{e.response.text}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise WeatherAPIError(f"Weather API request failed: {e}") from e
        except ValueError as e:
            raise WeatherAPIError(f"Invalid weather response: {e}") from e

        temp = weather.current.temp_c if unit == Unit.METRIC else weather.current.temp_f
        if temp is None:
            raise WeatherAPIError(
                f"No temperature found! Response from weatherapi.com is missing the {unit.value} reading."
            )

        logger.debug(f"Current temperature for {query}: {temp}")
        return temp

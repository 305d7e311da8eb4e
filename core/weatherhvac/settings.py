"""
weatherhvac Configuration Settings

Threshold configuration for weather mode.
Stored in weather.yaml in the config directory, edited with --weather-setup.
"""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Optional
import re


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


class Unit(str, Enum):
    """Unit system of the temperature reading."""

    METRIC = "metric"
    IMPERIAL = "imperial"


@dataclass
class ThresholdConfig:
    """Weather mode settings: API credentials, thresholds and polling interval."""

    api_key: Optional[str] = None  # weatherapi.com key
    query: Optional[str] = None  # location: zip code, city name, "lat,long"
    unit: Unit = Unit.IMPERIAL
    cool_above: Optional[float] = None
    heat_below: Optional[float] = None
    off_above: Optional[float] = None  # secondary to cooling
    off_below: Optional[float] = None  # secondary to heating
    interval_minutes: Optional[int] = None

    @property
    def interval_seconds(self) -> Optional[int]:
        if self.interval_minutes is None:
            return None
        return self.interval_minutes * 60

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ThresholdConfig":
        """Create from dictionary."""
        converted = {_camel_to_snake(k): v for k, v in (data or {}).items()}

        # Handle legacy metric flag and bare interval
        if "metric" in converted:
            metric = converted.pop("metric")
            if "unit" not in converted and metric is not None:
                converted["unit"] = Unit.METRIC if metric else Unit.IMPERIAL
        if "interval" in converted:
            interval = converted.pop("interval")
            converted.setdefault("interval_minutes", interval)

        known = {f.name for f in fields(cls)}
        converted = {k: v for k, v in converted.items() if k in known}

        if converted.get("unit") is None:
            converted.pop("unit", None)
        else:
            converted["unit"] = Unit(converted["unit"])

        for key in ("cool_above", "heat_below", "off_above", "off_below"):
            if converted.get(key) is not None:
                converted[key] = float(converted[key])
        if converted.get("interval_minutes") is not None:
            converted["interval_minutes"] = int(converted["interval_minutes"])

        return cls(**converted)

    def to_dict(self) -> dict[str, Any]:
        """Plain dictionary suitable for YAML."""
        data = asdict(self)
        data["unit"] = self.unit.value
        return data

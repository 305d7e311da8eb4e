"""
Local Storage

API key, tokens, thermostat registry and weather settings, kept as small
files in the config directory (~/.bulk_ecobee_thermostat_control by default).

Nothing is cached: every call reads or writes the file, so the files are the
single source of truth even across restarts. Any failure to read or write is
raised as StorageError, the local environment is unusable at that point.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from .exceptions import StorageError
from .models import ThermostatMeta, Tokens
from .settings import ThresholdConfig

logger = logging.getLogger(__name__)

CONFIG_DIRECTORY = ".bulk_ecobee_thermostat_control"
CONFIG_DIR_ENV = "WEATHERHVAC_CONFIG_DIR"

API_FILENAME = "api_key"
TOKENS_FILENAME = "api_tokens"
THERMOSTATS_FILENAME = "thermostats.yaml"
WEATHER_FILENAME = "weather.yaml"


def get_config_dir() -> Path:
    """Resolve the config directory.

    Uses WEATHERHVAC_CONFIG_DIR (environment or .env) when set, otherwise
    a directory in the user's home.
    """
    load_dotenv(find_dotenv(usecwd=True))
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()

    try:
        home = Path.home()
    except RuntimeError as e:
        raise StorageError(f"Error getting your home directory: {e}") from e
    return home / CONFIG_DIRECTORY


class ConfigStore:
    """File backed store for credentials, registry and settings."""

    def __init__(self, base_dir: Optional[Path] = None):
        """Initialize store.

        Args:
            base_dir: Config directory (resolved with get_config_dir() if omitted)
        """
        self.base_dir = Path(base_dir) if base_dir is not None else get_config_dir()

    def ensure_dir(self) -> None:
        """Create the config directory if it doesn't already exist."""
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Error creating config directory {self.base_dir}: {e}") from e

    def path(self, filename: str) -> Path:
        return self.base_dir / filename

    def _read(self, filename: str) -> str:
        try:
            return self.path(filename).read_text()
        except OSError as e:
            raise StorageError(f"Error reading {self.path(filename)}: {e}") from e

    def _write(self, filename: str, content: str) -> None:
        self.ensure_dir()
        try:
            self.path(filename).write_text(content)
        except OSError as e:
            raise StorageError(f"Error writing {self.path(filename)}: {e}") from e
        logger.debug(f"Wrote {self.path(filename)}")

    # API key

    def load_app_key(self) -> str:
        """Load the ecobee application key."""
        return self._read(API_FILENAME).strip()

    def write_app_key(self, api_key: str) -> None:
        self._write(API_FILENAME, api_key.strip())

    # Tokens

    def load_tokens(self) -> Tokens:
        """Load access and refresh tokens.

        Right after --pin the file only holds the authorization code and an
        empty refresh token.
        """
        lines = self._read(TOKENS_FILENAME).split("\n")
        access_token = lines[0].strip()
        refresh_token = lines[1].strip() if len(lines) > 1 else ""
        return Tokens(access_token=access_token, refresh_token=refresh_token)

    def write_tokens(self, tokens: Tokens) -> None:
        self._write(TOKENS_FILENAME, f"{tokens.access_token}\n{tokens.refresh_token}")

    # Thermostat registry

    def load_thermostats(self) -> list[ThermostatMeta]:
        """Load identifier and name of every registered thermostat."""
        content = self._read(THERMOSTATS_FILENAME)
        try:
            entries = yaml.safe_load(content) or []
            return [
                ThermostatMeta(identifier=str(e["identifier"]), name=str(e["name"]))
                for e in entries
            ]
        except (yaml.YAMLError, KeyError, TypeError) as e:
            raise StorageError(f"Invalid thermostat registry {self.path(THERMOSTATS_FILENAME)}: {e}") from e

    def write_thermostats(self, thermostats: list[ThermostatMeta]) -> None:
        """Replace the registry with the given thermostats."""
        entries = [{"identifier": t.identifier, "name": t.name} for t in thermostats]
        self._write(THERMOSTATS_FILENAME, yaml.safe_dump(entries, sort_keys=False))

    # Weather settings

    def load_weather_settings(self) -> ThresholdConfig:
        """Load weather settings.

        A missing file gives all-unset settings so --weather-setup can
        start from scratch.
        """
        path = self.path(WEATHER_FILENAME)
        if not path.exists():
            logger.error(f"Could not open weather settings file {path}")
            return ThresholdConfig()

        content = self._read(WEATHER_FILENAME)
        try:
            data = yaml.safe_load(content)
            if data is not None and not isinstance(data, dict):
                raise TypeError(f"expected a mapping, got {type(data).__name__}")
            return ThresholdConfig.from_dict(data)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            raise StorageError(f"Invalid weather settings {path}: {e}") from e

    def write_weather_settings(self, settings: ThresholdConfig) -> None:
        self._write(WEATHER_FILENAME, yaml.safe_dump(settings.to_dict(), sort_keys=False))

"""
ecobee API Client

PIN authorization, token exchange, thermostat status and HVAC mode updates.

Credentials are read from the ConfigStore before every call and written back
whenever new tokens are issued.
"""

import json
import logging
from typing import Any, Optional

import requests

from .exceptions import ThermostatAPIError
from .models import (
    AuthorizeResponse,
    OperatingMode,
    StatusResponse,
    ThermostatStatus,
    TokenResponse,
    Tokens,
    UpdateResponse,
)
from .storage import ConfigStore

logger = logging.getLogger(__name__)

BASE_URL = "https://api.ecobee.com"

GRANT_PIN = "ecobeePin"
GRANT_REFRESH = "refresh_token"

# Query parameter carrying the credential, per grant type
_TOKEN_PARAMS = {
    GRANT_PIN: "code",
    GRANT_REFRESH: "refresh_token",
}

_STATUS_SELECTION = {
    "selection": {
        "selectionType": "registered",
        "selectionMatch": "",
        "includeSettings": "true",
        "includeRuntime": "true",
    }
}


class EcobeeClient:
    """Simple ecobee REST API client."""

    def __init__(
        self,
        store: ConfigStore,
        base_url: str = BASE_URL,
        timeout: Optional[float] = None,
    ):
        """Initialize ecobee client.

        Args:
            store: Storage for the application key, tokens and thermostat registry
            base_url: API root
            timeout: Per request timeout in seconds (None leaves it to requests)
        """
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout

    def _auth_headers(self) -> dict[str, str]:
        tokens = self.store.load_tokens()
        return {
            "Authorization": f"Bearer {tokens.access_token}",
            "Content-Type": "application/json;charset=UTF-8",
        }

    def _request(self, method: str, path: str, what: str, **kwargs) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            raise ThermostatAPIError(
                f"Error with request for {what}: {e.response.status_code}\n{e.response.text}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise ThermostatAPIError(f"Transport error during {what}: {e}") from e
        except ValueError as e:
            raise ThermostatAPIError(f"Invalid response for {what}: {e}") from e

    def authorize(self) -> AuthorizeResponse:
        """Request an authorization PIN for this application.

        The returned code is stored as the access token until it is exchanged
        with get_tokens_with_code(). The user registers the PIN in the ecobee
        web portal under My Apps.

        Returns:
            Authorization response with the PIN and its expiry

        Raises:
            ThermostatAPIError: If the request fails
        """
        app_key = self.store.load_app_key()
        data = self._request(
            "GET",
            "/authorize",
            "authorize",
            params={"response_type": "ecobeePin", "client_id": app_key, "scope": "smartWrite"},
        )
        try:
            auth = AuthorizeResponse.model_validate(data)
        except ValueError as e:
            raise ThermostatAPIError(f"Invalid authorize response: {e}") from e

        self.store.write_tokens(Tokens(access_token=auth.code, refresh_token=""))
        logger.info(f"Authorization PIN issued, expires in {auth.expires_in} minutes")
        return auth

    def fetch_tokens(self, credential: str, grant_type: str) -> TokenResponse:
        """Call the token endpoint and store the new access and refresh tokens.

        Args:
            credential: Authorization code (ecobeePin) or refresh token
            grant_type: "ecobeePin" or "refresh_token"

        Raises:
            ValueError: If grant_type is unknown
            ThermostatAPIError: If the request fails
        """
        if grant_type not in _TOKEN_PARAMS:
            raise ValueError(f"Bad grant type for fetch_tokens: {grant_type}")

        app_key = self.store.load_app_key()
        data = self._request(
            "POST",
            "/token",
            "tokens",
            params={
                "grant_type": grant_type,
                "client_id": app_key,
                _TOKEN_PARAMS[grant_type]: credential,
            },
        )
        try:
            tok = TokenResponse.model_validate(data)
        except ValueError as e:
            raise ThermostatAPIError(f"Invalid token response: {e}") from e

        self.store.write_tokens(Tokens(access_token=tok.access_token, refresh_token=tok.refresh_token))
        logger.info(f"Tokens retrieved successfully. Expires in {tok.expires_in} seconds")
        return tok

    def get_tokens_with_code(self) -> TokenResponse:
        """Exchange the stored authorization code for the first token pair.

        Needs to be called soon after authorize().
        """
        tokens = self.store.load_tokens()
        logger.info("Requesting access tokens after registering app with PIN")
        return self.fetch_tokens(tokens.access_token, GRANT_PIN)

    def refresh_tokens(self) -> TokenResponse:
        """Refresh the tokens and update the local store."""
        tokens = self.store.load_tokens()
        logger.debug("Refreshing access tokens")
        return self.fetch_tokens(tokens.refresh_token, GRANT_REFRESH)

    def thermostat_status(self) -> list[ThermostatStatus]:
        """Get name, identifier, HVAC mode, temperature and humidity of every
        registered thermostat.

        Also replaces the local thermostat registry with the returned
        identifiers and names.

        Raises:
            ThermostatAPIError: If the request fails
        """
        data = self._request(
            "GET",
            "/1/thermostat",
            "thermostats",
            headers=self._auth_headers(),
            params={"json": json.dumps(_STATUS_SELECTION)},
        )
        try:
            status = StatusResponse.model_validate(data)
        except ValueError as e:
            raise ThermostatAPIError(f"Invalid thermostat response: {e}") from e

        thermostats = [t.to_status() for t in status.thermostats]
        self.store.write_thermostats([t.meta for t in thermostats])
        logger.debug(f"Registry refreshed with {len(thermostats)} thermostat(s)")
        return thermostats

    def update_thermostat(self, identifier: str, mode: OperatingMode) -> None:
        """Set the HVAC mode of a single thermostat.

        Args:
            identifier: Thermostat identifier
            mode: Target mode (heat, cool or off)

        Raises:
            ValueError: If mode is not settable
            ThermostatAPIError: If the request fails or ecobee reports an error
        """
        if not mode.settable:
            raise ValueError(f"Cannot set HVAC mode to {mode.value}")

        body = {
            "selection": {
                "selectionType": "thermostats",
                "selectionMatch": identifier,
            },
            "thermostat": {
                "settings": {
                    "hvacMode": mode.value,
                }
            },
        }
        data = self._request(
            "POST",
            "/1/thermostat",
            f"thermostat {identifier}",
            headers=self._auth_headers(),
            params={"format": "json"},
            json=body,
        )
        try:
            result = UpdateResponse.model_validate(data)
        except ValueError as e:
            raise ThermostatAPIError(f"Invalid update response for {identifier}: {e}") from e

        if result.status.code != 0:
            raise ThermostatAPIError(
                f"ecobee rejected update for {identifier}: {result.status.code} {result.status.message}"
            )
        logger.info(f"Set {identifier} HVAC mode to {mode.value}")

    def update_thermostats(self, mode: OperatingMode) -> dict[str, bool]:
        """Set the HVAC mode on every registered thermostat.

        ecobee is unreliable when one request selects several thermostats, so
        each thermostat gets its own request. A failure is logged and doesn't
        stop the remaining updates.

        Returns:
            Mapping of thermostat identifier to whether its update succeeded
        """
        results = {}
        for thermostat in self.store.load_thermostats():
            try:
                self.update_thermostat(thermostat.identifier, mode)
                results[thermostat.identifier] = True
            except ThermostatAPIError as e:
                logger.error(f"Failed to set {thermostat.name} ({thermostat.identifier}) to {mode.value}: {e}")
                results[thermostat.identifier] = False
        return results

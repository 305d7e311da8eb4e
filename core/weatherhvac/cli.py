"""
weatherhvac Command Line

Setup (run once, in order):
    weatherhvac --key            store the ecobee application key
    weatherhvac --pin            get a PIN and register the app in the ecobee portal
    weatherhvac --auth           exchange the PIN code for tokens
    weatherhvac --weather-setup  configure weatherapi.com and thresholds

Then either one-shot commands (--status, --refresh, --check-weather, --heat,
--cool, --off) or --weather to run weather mode until stopped.
"""

import argparse
import asyncio
import sys
from datetime import datetime
from typing import Optional

from loguru import logger

from .control import WeatherControlService, check_weather
from .ecobee_client import EcobeeClient
from .exceptions import ConfigurationError, StorageError, ThermostatAPIError, WeatherAPIError
from .log_config import setup_logging
from .models import OperatingMode, ThermostatStatus, aggregate_mode
from .storage import ConfigStore
from .weather_client import WeatherClient
from .weather_setup import run_setup

SETUP_FLAGS = ("key", "pin", "auth", "weather_setup")
ACTION_FLAGS = ("weather", "check_weather", "refresh", "status", "cool", "heat", "off")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weatherhvac",
        description="Bulk ecobee thermostat control, optionally driven by the outdoor temperature.",
    )

    setup = parser.add_argument_group("setup")
    setup.add_argument("--key", action="store_true", help="store the ecobee application key")
    setup.add_argument("--pin", action="store_true", help="request an authorization PIN")
    setup.add_argument("--auth", action="store_true", help="request tokens after registering the PIN")
    setup.add_argument("--weather-setup", action="store_true", help="configure weather mode")

    parser.add_argument("-v", "--verbose", action="store_true", help="log info messages")
    parser.add_argument("-d", "--debug", action="store_true", help="log debug messages")

    parser.add_argument("--weather", action="store_true", help="run weather mode until stopped")
    parser.add_argument("--check-weather", action="store_true", help="print the current temperature")
    parser.add_argument("-r", "--refresh", action="store_true", help="refresh access tokens")
    parser.add_argument("-s", "--status", action="store_true", help="print thermostat status")

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("--cool", action="store_true", help="set all thermostats to cool")
    modes.add_argument("--heat", action="store_true", help="set all thermostats to heat")
    modes.add_argument("--off", action="store_true", help="turn all thermostats off")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse arguments and enforce flag conflicts."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup = [f for f in SETUP_FLAGS if getattr(args, f)]
    actions = [f for f in ACTION_FLAGS if getattr(args, f)]
    if len(setup) > 1 or (setup and actions):
        used = ", ".join("--" + f.replace("_", "-") for f in setup + actions)
        parser.error(f"setup flags can't be combined with other commands: {used}")

    if args.weather:
        conflicts = [f for f in ("cool", "heat", "off", "refresh", "status") if getattr(args, f)]
        if conflicts:
            parser.error(f"--weather can't be combined with --{', --'.join(conflicts)}")

    return args


def print_status(thermostats: list[ThermostatStatus]) -> None:
    print("=========================================")
    print("Thermostats")
    print("=========================================")
    for t in thermostats:
        print(f"Thermostat {t.name} (id: {t.identifier})")
        print(f"HVAC Mode: {t.mode.value}")
        print(f"Actual Temperature: {t.actual_temperature}, Actual Humidity: {t.actual_humidity}%\n")
    print("=========================================")
    print(f"Overall HVAC Mode: {aggregate_mode(t.mode for t in thermostats).value}")


def _selected_mode(args: argparse.Namespace) -> Optional[OperatingMode]:
    if args.cool:
        return OperatingMode.COOL
    if args.heat:
        return OperatingMode.HEAT
    if args.off:
        return OperatingMode.OFF
    return None


def run_weather(store: ConfigStore, ecobee: EcobeeClient, weather: WeatherClient) -> int:
    """Run weather mode in the foreground until interrupted."""
    settings = store.load_weather_settings()
    service = WeatherControlService(ecobee, weather, settings)

    print(f"Starting weather mode, checking every {service.interval_minutes} minutes. Press Ctrl+C to stop.")
    try:
        asyncio.run(service.run_forever())
    except KeyboardInterrupt:
        logger.info("Weather mode stopped")
        return 130
    return 0


def dispatch(args: argparse.Namespace, store: ConfigStore) -> int:
    ecobee = EcobeeClient(store)
    weather = WeatherClient()

    # Setup steps
    if args.key:
        try:
            api_key = input("ecobee API key> ")
        except EOFError:
            logger.error("Setup aborted, no API key entered")
            return 1
        store.write_app_key(api_key)
        print(f"API key saved to {store.base_dir}")
        return 0

    if args.pin:
        auth = ecobee.authorize()
        print(f"Ecobee Authorization PIN: {auth.ecobee_pin}")
        print(f"(expires in {auth.expires_in} minutes)")
        print("Log into the Ecobee web portal and register the application using the PIN in your `My Apps` widget.")
        return 0

    if args.auth:
        ecobee.get_tokens_with_code()
        print("Tokens retrieved successfully.")
        # Populates the thermostat registry
        print_status(ecobee.thermostat_status())
        return 0

    if args.weather_setup:
        return 0 if run_setup(store) is not None else 1

    if args.weather:
        return run_weather(store, ecobee, weather)

    # One-shot commands, a failure doesn't stop the ones after it
    exit_code = 0

    if args.refresh:
        try:
            ecobee.refresh_tokens()
        except ThermostatAPIError as e:
            logger.error(f"Token refresh failed: {e}")
            exit_code = 1

    if args.status:
        try:
            print_status(ecobee.thermostat_status())
        except ThermostatAPIError as e:
            logger.error(f"Status request failed: {e}")
            exit_code = 1

    if args.check_weather:
        try:
            temp = check_weather(weather, store.load_weather_settings())
            print(f"Current temp is {temp} as of {datetime.now().strftime('%a, %d %b %Y %H:%M:%S')}")
        except WeatherAPIError as e:
            logger.error(f"{e}")
            exit_code = 1

    mode = _selected_mode(args)
    if mode is not None:
        results = ecobee.update_thermostats(mode)
        for identifier, ok in results.items():
            print(f"{identifier}: {'set to ' + mode.value if ok else 'FAILED'}")
        if not results:
            logger.error("No registered thermostats. Run --status to refresh the registry.")
        if not results or not all(results.values()):
            exit_code = 1

    return exit_code


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)
    logger.info(f"Bulk Ecobee Thermostat Control Run @ {datetime.now().isoformat(timespec='seconds')}")

    try:
        store = ConfigStore()
        store.ensure_dir()
        return dispatch(args, store)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except StorageError as e:
        logger.error(f"Storage error: {e}")
        return 1
    except ThermostatAPIError as e:
        logger.error(f"ecobee request failed: {e}")
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

"""
Interactive weather mode setup.

Prompts for each setting, validates the result and writes it only when valid.
"""

import logging
from typing import Any, Callable, Optional

from .settings import ThresholdConfig, Unit
from .storage import ConfigStore
from .validation import validate_settings

logger = logging.getLogger(__name__)

UNSET = "unset"

_TRUE = {"true", "t", "yes", "y", "1"}
_FALSE = {"false", "f", "no", "n", "0"}


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"not a yes/no value: {value!r}")


def _display(value: Any) -> str:
    if value is None:
        return UNSET
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def get_value(
    msg: str,
    current_value: Any,
    parse: Callable[[str], Any],
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[..., None] = print,
) -> Any:
    """Prompt for one setting.

    <ENTER> keeps the current value, <SPACE><ENTER> unsets it, anything else
    is parsed. Input that doesn't parse is asked for again.
    """
    while True:
        entry = input_fn(f"{msg} (current_value: {_display(current_value)})> ")
        if entry == " ":
            return None
        if entry == "":
            return current_value
        try:
            return parse(entry.strip())
        except ValueError:
            print_fn(f"Could not understand {entry.strip()!r}, try again.")


def prompt_settings(
    current: ThresholdConfig,
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[..., None] = print,
) -> ThresholdConfig:
    """Ask for every weather setting, starting from the current ones."""

    def ask(msg, value, parse):
        return get_value(msg, value, parse, input_fn=input_fn, print_fn=print_fn)

    api_key = ask("weatherapi.com API Key", current.api_key, str)
    query = ask("query", current.query, str)
    metric = ask("use metric?", current.unit == Unit.METRIC, parse_bool)
    cool_above = ask("cool above", current.cool_above, float)
    heat_below = ask("heat below", current.heat_below, float)
    off_above = ask("turn hvac off above", current.off_above, float)
    off_below = ask("turn hvac off below", current.off_below, float)
    interval = ask("interval in minutes", current.interval_minutes, int)

    return ThresholdConfig(
        api_key=api_key,
        query=query,
        unit=Unit.METRIC if metric else Unit.IMPERIAL,
        cool_above=cool_above,
        heat_below=heat_below,
        off_above=off_above,
        off_below=off_below,
        interval_minutes=interval,
    )


def run_setup(
    store: ConfigStore,
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[..., None] = print,
) -> Optional[ThresholdConfig]:
    """Interactive setup for weather mode.

    Returns:
        The saved settings, or None if input ended early or validation
        failed, and nothing was written
    """
    print_fn("Weather setup.")
    print_fn("Press <ENTER> to skip an entry and keep the current value.")
    print_fn("Press <SPACE> then <ENTER> to set an entry to empty (unset).")

    try:
        candidate = prompt_settings(store.load_weather_settings(), input_fn=input_fn, print_fn=print_fn)
    except EOFError:
        # stdin closed mid-prompt
        print_fn("")
        print_fn("Setup aborted, nothing saved.")
        logger.warning("Weather setup aborted, input closed")
        return None

    errors = validate_settings(candidate)
    if errors:
        for error in errors:
            print_fn(f"ERROR: {error}")
        logger.warning(f"Weather settings rejected with {len(errors)} error(s), nothing saved")
        return None

    store.write_weather_settings(candidate)
    print_fn("Weather settings saved.")
    return candidate

"""
Threshold Settings Validation

Checks a candidate ThresholdConfig before it is written, so weather mode
never runs with contradictory thresholds.

Thresholds must follow:

    cool_above > off_above > off_below > heat_below

where each one that is set must be strictly greater than the next one that
is set. cool_above and heat_below are mandatory, the off thresholds are
optional. This rules out turning cooling off at high temperatures or heating
off at low temperatures.
"""

import math

from .settings import ThresholdConfig


def validate_settings(settings: ThresholdConfig) -> list[str]:
    """Validate weather settings.

    Args:
        settings: Candidate configuration, with unset fields left as None

    Returns:
        List of violations, empty if the settings are valid. Every check
        runs, so all problems are reported at once.
    """
    errors = []

    cool_above = settings.cool_above
    heat_below = settings.heat_below
    off_above = settings.off_above
    off_below = settings.off_below
    interval = settings.interval_minutes

    if not settings.api_key:
        errors.append("API Key unset.")
    if interval is None:
        errors.append("Interval unset.")
    if not settings.query:
        errors.append("Query unset.")
    if cool_above is None:
        errors.append("Cool Above unset.")
    if heat_below is None:
        errors.append("Heat Below unset.")

    if interval is not None and interval < 1:
        errors.append("Setting interval to less than every minute.")

    for label, value in (
        ("Cool Above", cool_above),
        ("Heat Below", heat_below),
        ("Off Above", off_above),
        ("Off Below", off_below),
    ):
        if value is not None and not math.isfinite(value):
            errors.append(f"{label} ({value}) is not a finite number.")

    # Ordering checks need both comfort thresholds
    if cool_above is None or heat_below is None:
        return errors

    if not cool_above > heat_below:
        errors.append(
            f"Setting Cool Above ({cool_above}) to less than or equal to Heat Below ({heat_below})."
        )

    if off_above is not None and off_below is not None:
        if not (cool_above > off_above > off_below > heat_below):
            errors.append("Cool Above > Off Above > Off Below > Heat Below is not true.")
    elif off_above is not None:
        if not (cool_above > off_above > heat_below):
            errors.append("Cool Above > Off Above > Heat Below is not true.")
    elif off_below is not None:
        if not (cool_above > off_below > heat_below):
            errors.append("Cool Above > Off Below > Heat Below is not true.")

    return errors


def is_valid(settings: ThresholdConfig) -> bool:
    """Whether settings pass validation."""
    return not validate_settings(settings)

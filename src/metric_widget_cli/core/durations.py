# src/metric_widget_cli/core/durations.py
"""
Compact offsets for the query window, e.g. '4320H' = 4320 hours ago.

Units: S (seconds), M (minutes), H (hours), D (days), W (weeks), case-insensitive.
"""

import re
from datetime import timedelta

from metric_widget_cli.core.exceptions import ConfigError

_DURATION_RE = re.compile(r"^(\d+)([SMHDW])$", re.IGNORECASE)

_UNITS = {
    "S": "seconds",
    "M": "minutes",
    "H": "hours",
    "D": "days",
    "W": "weeks",
}


def parse_duration(text: str) -> timedelta:
    """Parses compact offsets like '4320H', '30D' or '15m' into a timedelta."""
    if not isinstance(text, str):
        raise ConfigError(f"Invalid duration {text!r}: expected a string like '4320H'")
    match = _DURATION_RE.match(text.strip())
    if not match:
        raise ConfigError(
            f"Invalid duration {text!r}: expected <number><unit> with unit one of S, M, H, D, W (e.g. '4320H')"
        )
    amount, unit = match.groups()
    try:
        return timedelta(**{_UNITS[unit.upper()]: int(amount)})
    except (OverflowError, ValueError) as e:
        raise ConfigError(f"Invalid duration {text!r}: out of range") from e

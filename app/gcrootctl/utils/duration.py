"""Human-friendly duration parsing and formatting.

Durations are written as a sequence of ``<number><unit>`` terms, for
example ``14d``, ``1h 30m`` or ``2weeks``. Months and years use the
average Gregorian lengths (30.44 and 365.25 days).
"""

import re
from datetime import timedelta

_SECONDS_PER_DAY = 86400

# Unit spellings accepted by parse_duration, mapped to seconds.
_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "nsec": 1e-9,
    "us": 1e-6,
    "usec": 1e-6,
    "ms": 1e-3,
    "msec": 1e-3,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": _SECONDS_PER_DAY,
    "day": _SECONDS_PER_DAY,
    "days": _SECONDS_PER_DAY,
    "w": 7 * _SECONDS_PER_DAY,
    "week": 7 * _SECONDS_PER_DAY,
    "weeks": 7 * _SECONDS_PER_DAY,
    "M": 30.44 * _SECONDS_PER_DAY,
    "month": 30.44 * _SECONDS_PER_DAY,
    "months": 30.44 * _SECONDS_PER_DAY,
    "y": 365.25 * _SECONDS_PER_DAY,
    "year": 365.25 * _SECONDS_PER_DAY,
    "years": 365.25 * _SECONDS_PER_DAY,
}

_TERM_RE = re.compile(r"(\d+)\s*([A-Za-z]+)")

# Units used by format_duration, largest first.
_FORMAT_UNITS: tuple[tuple[str, int], ...] = (
    ("d", _SECONDS_PER_DAY),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
)


def parse_duration(value: str) -> timedelta:
    """Parse a human-friendly duration string.

    Args:
        value: Duration such as ``"3d"``, ``"1h 30m"`` or ``"0s"``.

    Returns:
        The parsed duration.

    Raises:
        ValueError: If the string is empty, contains an unknown unit,
            or has text that is not part of a ``<number><unit>`` term.
    """
    text = value.strip()
    if not text:
        msg = "Duration cannot be empty"
        raise ValueError(msg)

    total = 0.0
    position = 0
    for match in _TERM_RE.finditer(text):
        gap = text[position : match.start()]
        if gap.strip():
            msg = f"Invalid duration {value!r}: unexpected {gap.strip()!r}"
            raise ValueError(msg)

        number, unit = match.groups()
        if unit not in _UNITS:
            msg = f"Invalid duration {value!r}: unknown unit {unit!r}"
            raise ValueError(msg)
        total += int(number) * _UNITS[unit]
        position = match.end()

    if position == 0 or text[position:].strip():
        msg = f"Invalid duration {value!r}: expected terms like '3d' or '1h 30m'"
        raise ValueError(msg)

    return timedelta(seconds=total)


def format_duration(duration: timedelta) -> str:
    """Format a duration in the syntax accepted by parse_duration.

    Sub-second precision is dropped. A zero duration formats as ``"0s"``.

    Args:
        duration: Duration to format.

    Returns:
        Space separated terms, largest unit first (e.g. ``"1d 2h"``).
    """
    remaining = max(int(duration.total_seconds()), 0)
    if remaining == 0:
        return "0s"

    parts: list[str] = []
    for suffix, size in _FORMAT_UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{suffix}")
    return " ".join(parts)


def format_duration_short(duration: timedelta) -> str:
    """Format a duration keeping only its two most significant terms."""
    return " ".join(format_duration(duration).split(" ")[:2])

"""Parsing of reference durations and instrument timestamps."""

import re
from datetime import datetime
from typing import Optional

# [HH:]MM:SS[.sss] with one or two digits per field
_DURATION_RE = re.compile(r'^(?:(\d{1,2}):)?(\d{1,2}):(\d{1,2}(?:\.\d+)?)$')

# DD/MM/YYYY HH:MM[:SS[.fraction]]
_TIMESTAMP_RE = re.compile(
    r'^(\d{1,2})/(\d{1,2})/(\d{1,4})\s+(\d{1,2}):(\d{1,2})(?::(\d{1,2})(?:\.(\d*))?)?$'
)

# Sweep file names: ...__IS_DD_MM_YYYY hh_mm_ss[.fraction].csv
_SWEEP_NAME_RE = re.compile(
    r'__IS_(\d{2})_(\d{2})_(\d{4}) (\d{2})_(\d{2})_(\d{2})(?:\.(\d*))?\.csv$', re.IGNORECASE
)


def _build_datetime(year: int, month: int, day: int, hours: int, minutes: int,
                    seconds: int, fraction: str) -> Optional[datetime]:
    milliseconds = int(fraction.ljust(3, '0')[:3]) if fraction else 0
    try:
        return datetime(year, month, day, hours, minutes, seconds, milliseconds * 1000)
    except ValueError:
        return None


def time_string_to_minutes(time_str: Optional[str]) -> Optional[float]:
    """Convert ``[HH:]MM:SS[.sss]`` into total minutes.

    Hours are optional, minutes and seconds are mandatory.

    Returns:
        Total minutes, or None if the string does not match the format.
    """
    if not isinstance(time_str, str):
        return None
    match = _DURATION_RE.match(time_str.strip())
    if not match:
        return None
    hours = float(match.group(1)) if match.group(1) else 0.0
    minutes = float(match.group(2))
    seconds = float(match.group(3))
    return hours * 60.0 + minutes + seconds / 60.0


def parse_custom_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an instrument timestamp ``DD/MM/YYYY HH:MM:SS.s``.

    Seconds and the fractional part are optional; the fraction is read to
    millisecond precision (``.5`` is 500 ms, ``.12345`` is 123 ms).

    Returns:
        A naive datetime, or None if the text is malformed or names an
        impossible calendar date.
    """
    if not isinstance(value, str):
        return None
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        return None
    day, month, year, hours, minutes = (int(match.group(i)) for i in range(1, 6))
    seconds = int(match.group(6)) if match.group(6) else 0
    return _build_datetime(year, month, day, hours, minutes, seconds, match.group(7) or '')


def parse_sweep_timestamp(file_name: Optional[str]) -> Optional[datetime]:
    """Acquisition time encoded in an impedance sweep file name.

    ``run__IS_05_06_2024 12_30_15.25.csv`` is 5 June 2024 12:30:15.250.

    Returns:
        A naive datetime, or None if the name does not carry a valid stamp.
    """
    if not isinstance(file_name, str):
        return None
    match = _SWEEP_NAME_RE.search(file_name)
    if not match:
        return None
    day, month, year, hours, minutes, seconds = (int(match.group(i)) for i in range(1, 7))
    return _build_datetime(year, month, day, hours, minutes, seconds, match.group(7) or '')


def seconds_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """Elapsed seconds from ``start`` to ``end``; None if either is missing."""
    if start is None or end is None:
        return None
    return (end - start).total_seconds()

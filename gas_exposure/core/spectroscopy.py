"""Impedance spectroscopy sweeps.

Each sweep file holds one frequency scan (frequency, phase angle, impedance
magnitude per row) and carries its acquisition time in the file name. Sweeps
are placed on a common time axis measured from the first successfully parsed
file and sorted by that relative time.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

import pandas as pd

from .time_parsing import parse_sweep_timestamp, seconds_between
from .values import parse_float

logger = logging.getLogger(__name__)

HEADER_PREFIX = 'frequency (hz)'


@dataclass(frozen=True)
class SpectroscopySweep:
    file_name: str
    effective_name: str
    timestamp: Optional[datetime]
    frequencies: Tuple[float, ...]
    impedances: Tuple[float, ...]
    phases: Tuple[float, ...]
    relative_time_minutes: Optional[float] = None

    def __len__(self) -> int:
        return len(self.frequencies)


def _numeric_triple(line: str) -> Optional[Tuple[float, float, float]]:
    values = line.split(',')
    if len(values) < 3:
        return None
    parsed = [parse_float(v) for v in values[:3]]
    if any(v is None for v in parsed):
        return None
    return parsed[0], parsed[1], parsed[2]


def find_data_start(lines: Sequence[str]) -> Optional[int]:
    """Index of the first data line of a sweep file.

    Data follows a line starting with ``Frequency (Hz)`` (case-insensitive).
    Without that header, the first line with three numeric leading fields is
    taken as the start.
    """
    for i, line in enumerate(lines):
        if line.strip().lower().startswith(HEADER_PREFIX):
            return i + 1
    for i, line in enumerate(lines):
        if line.strip() and _numeric_triple(line) is not None:
            return i
    return None


def parse_spectroscopy_text(text: str,
                            file_name: str,
                            effective_name: Optional[str] = None,
                            fallback_timestamp: Optional[datetime] = None) -> Optional[SpectroscopySweep]:
    """Parse the contents of one sweep file.

    Columns are read as frequency, phase angle and impedance magnitude. Rows
    without three numeric fields are ignored.

    Args:
        text: File contents.
        file_name: Name of the file as found on disk; its timestamp is used.
        effective_name: Display name used in logs, defaults to ``file_name``.
        fallback_timestamp: Used when the name carries no timestamp pattern,
            typically the file modification time.

    Returns:
        The sweep, or None when no data rows were found.
    """
    name = effective_name or file_name
    timestamp = parse_sweep_timestamp(file_name)
    if timestamp is None:
        logger.warning(f"Timestamp pattern not found in file name {file_name}; using fallback timestamp")
        timestamp = fallback_timestamp

    lines = text.splitlines()
    start = find_data_start(lines)
    if start is None:
        logger.error(f"Data table start (marked by '{HEADER_PREFIX}' or numeric rows) not found in {name}")
        return None
    if start == 0 or not lines[start - 1].strip().lower().startswith(HEADER_PREFIX):
        logger.warning(f"Header '{HEADER_PREFIX}' not found in {name}; parsing data from line {start + 1}")

    frequencies, phases, impedances = [], [], []
    for line in lines[start:]:
        triple = _numeric_triple(line) if line.strip() else None
        if triple is None:
            continue
        frequencies.append(triple[0])
        phases.append(triple[1])
        impedances.append(triple[2])

    if not frequencies:
        logger.warning(f"No valid data rows found in {name} after the data start")
        return None

    return SpectroscopySweep(
        file_name=file_name,
        effective_name=name,
        timestamp=timestamp,
        frequencies=tuple(frequencies),
        impedances=tuple(impedances),
        phases=tuple(phases),
    )


def process_spectroscopy_sweeps(sweeps: Sequence[Optional[SpectroscopySweep]],
                                progress: Optional[Callable[[int, int], None]] = None) -> List[SpectroscopySweep]:
    """Attach relative times and sort sweeps chronologically.

    The first sweep with a timestamp defines time zero, so sweeps recorded
    earlier than it get negative relative times. Missing sweeps and sweeps
    without a timestamp are skipped with a warning.
    """
    t0 = None
    timed = []
    for i, sweep in enumerate(sweeps):
        if sweep is None or sweep.timestamp is None:
            label = 'unparsed file' if sweep is None else sweep.effective_name
            logger.warning(f"Skipped or failed to parse: {label}")
        else:
            if t0 is None:
                t0 = sweep.timestamp
            relative = seconds_between(t0, sweep.timestamp) / 60.0
            timed.append(replace(sweep, relative_time_minutes=relative))
            logger.info(f"Completed processing: {sweep.effective_name}")
        if progress is not None:
            progress(i + 1, len(sweeps))
    return sorted(timed, key=lambda s: s.relative_time_minutes)


def sweep_frequencies(sweeps: Sequence[SpectroscopySweep]) -> List[float]:
    """Sorted union of the frequencies of all sweeps."""
    return sorted({f for sweep in sweeps for f in sweep.frequencies})


def pivot_sweeps(sweeps: Sequence[SpectroscopySweep], quantity: str = 'impedance') -> pd.DataFrame:
    """One row per sweep, one column per frequency.

    ``quantity`` is ``'impedance'`` or ``'phase'``. The first column,
    ``time_min``, holds the relative time rounded to four decimals. Frequencies
    missing from a sweep and non-finite values are NaN.
    """
    if quantity not in ('impedance', 'phase'):
        raise ValueError(f"Unknown sweep quantity: {quantity!r}")
    frequencies = sweep_frequencies(sweeps)
    records = []
    for sweep in sweeps:
        values = sweep.impedances if quantity == 'impedance' else sweep.phases
        by_frequency = {}
        for f, v in zip(sweep.frequencies, values):
            # first occurrence of a repeated frequency wins
            by_frequency.setdefault(f, v)
        time_min = sweep.relative_time_minutes
        row = [math.nan if time_min is None else round(time_min, 4)]
        for f in frequencies:
            v = by_frequency.get(f)
            row.append(v if v is not None and math.isfinite(v) else math.nan)
        records.append(row)
    return pd.DataFrame(records, columns=['time_min'] + frequencies)

"""Per-file sensor signal normalization and concentration annotation."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd

from .gas_profile import ConcentrationPoint
from .sampler import interpolate_concentrations
from .time_parsing import parse_custom_datetime, seconds_between
from .values import parse_float, to_nan

logger = logging.getLogger(__name__)

TIME_COLUMN = 0
IMPEDANCE_COLUMN = 7
PHASE_COLUMN = 8
IMPEDANCE_LIMIT = 1e12
SIGNAL_LIMIT = 1e4

READING_COLUMNS = [
    'original_time', 'time_s', 'time_min', 'impedance', 'phase', 'signal', 'gas_concentration',
]


@dataclass(frozen=True)
class SensorReading:
    """One processed row of a sensor log. None marks an undefined value."""
    original_time: Optional[str]
    time_seconds: Optional[float]
    time_minutes: Optional[float]
    impedance: Optional[float]
    phase: Optional[float]
    signal: Optional[float]
    gas_concentration: Optional[float]


@dataclass(frozen=True)
class SensorTable:
    """Processed readings of one sensor file."""
    file_name: str
    readings: Tuple[SensorReading, ...]
    sensor_number: Optional[int] = None
    original_file_name: Optional[str] = None
    baseline_index: Optional[int] = None
    baseline_impedance: Optional[float] = None

    def __len__(self) -> int:
        return len(self.readings)

    def to_frame(self) -> pd.DataFrame:
        """Tabular view with undefined values as NaN."""
        records = [
            {
                'original_time': r.original_time,
                'time_s': to_nan(r.time_seconds),
                'time_min': to_nan(r.time_minutes),
                'impedance': to_nan(r.impedance),
                'phase': to_nan(r.phase),
                'signal': to_nan(r.signal),
                'gas_concentration': to_nan(r.gas_concentration),
            }
            for r in self.readings
        ]
        return pd.DataFrame(records, columns=READING_COLUMNS)


@dataclass(frozen=True)
class _RawReading:
    original_time: Optional[str]
    time_seconds: Optional[float]
    time_minutes: Optional[float]
    impedance: Optional[float]
    phase: Optional[float]


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if row is not None and len(row) > index else None


def _parse_row(row: Sequence[Any], t0: Optional[datetime],
               time_col: int, impedance_col: int, phase_col: int,
               min_columns: int) -> Tuple[_RawReading, bool]:
    raw_time = _cell(row, time_col)
    original_time = None if raw_time is None else str(raw_time)
    if row is None or len(row) < min_columns:
        return _RawReading(original_time, None, None, None, None), False

    time_seconds = seconds_between(t0, parse_custom_datetime(original_time))
    time_minutes = None if time_seconds is None else time_seconds / 60.0
    return _RawReading(
        original_time=original_time,
        time_seconds=time_seconds,
        time_minutes=time_minutes,
        impedance=parse_float(row[impedance_col]),
        phase=parse_float(row[phase_col]),
    ), True


def select_baseline_index(times_minutes: Sequence[Optional[float]],
                          reference_time_minutes: float) -> Optional[int]:
    """Index of the baseline reading.

    The last reading at or before the reference time wins; otherwise the
    first reading with a defined time is used.
    """
    chosen = None
    first_defined = None
    for index, t in enumerate(times_minutes):
        if t is None:
            continue
        if first_defined is None:
            first_defined = index
        if t <= reference_time_minutes:
            chosen = index
    if chosen is None:
        return first_defined
    return chosen


def percent_signal(impedance: Optional[float], baseline: Optional[float]) -> Optional[float]:
    """Relative impedance change against the baseline, in percent.

    Undefined when either value is undefined, the baseline is zero or not
    finite, or the result is not a finite number.
    """
    if impedance is None or baseline is None or baseline == 0 or not math.isfinite(baseline):
        return None
    signal = (impedance - baseline) / baseline * 100.0
    return signal if math.isfinite(signal) else None


def process_sensor_rows(rows: Sequence[Sequence[Any]],
                        reference_time_minutes: float,
                        profile: Sequence[ConcentrationPoint] = (),
                        profile_available: bool = False,
                        file_name: str = '',
                        sensor_number: Optional[int] = None,
                        original_file_name: Optional[str] = None,
                        time_col: int = TIME_COLUMN,
                        impedance_col: int = IMPEDANCE_COLUMN,
                        phase_col: int = PHASE_COLUMN,
                        impedance_limit: float = IMPEDANCE_LIMIT,
                        signal_limit: float = SIGNAL_LIMIT) -> Optional[SensorTable]:
    """Build the signal table for one sensor file.

    Args:
        rows: Parsed rows of the file; column positions are given by the
            ``*_col`` arguments.
        reference_time_minutes: Baseline reference time, minutes from the
            first timestamp of the file.
        profile: Concentration breakpoints used to annotate readings.
        profile_available: False when the gas profile could not be built.
        file_name: Name used in logs and on the resulting table.
        sensor_number: Display sensor number, if known.
        original_file_name: Name of the file as found on disk.
        impedance_limit: Impedance magnitudes above this become undefined.
        signal_limit: Signal magnitudes above this become undefined.

    Returns:
        The processed table, or None when the file has no rows.
    """
    if not rows:
        logger.warning(f"Skipping {file_name}: file is empty or parsing yielded no data")
        return None

    min_columns = max(time_col, impedance_col, phase_col) + 1
    t0_text = _cell(rows[0], time_col)
    t0 = parse_custom_datetime(None if t0_text is None else str(t0_text))
    if t0 is None:
        logger.warning(
            f"Initial timestamp {t0_text!r} in {file_name} could not be parsed; "
            f"relative times for this file are undefined")

    raw: List[_RawReading] = []
    for row_number, row in enumerate(rows, start=1):
        reading, complete = _parse_row(row, t0, time_col, impedance_col, phase_col, min_columns)
        if not complete:
            logger.warning(
                f"Row {row_number} in {file_name} has insufficient columns "
                f"(expected {min_columns}); its values are undefined")
        raw.append(reading)

    baseline_index = select_baseline_index([r.time_minutes for r in raw], reference_time_minutes)
    if baseline_index is not None and raw[baseline_index].time_minutes > reference_time_minutes:
        logger.warning(
            f"For {file_name}, no data points found at or before reference time; "
            f"using first valid data point for baseline")
    baseline = raw[baseline_index].impedance if baseline_index is not None else None
    if baseline is not None and not math.isfinite(baseline):
        baseline = None
    if baseline is None:
        logger.warning(f"Reference impedance for {file_name} is undefined; signals will be undefined")

    annotate = profile_available and len(profile) > 0
    if annotate:
        concentrations = interpolate_concentrations(profile, [to_nan(r.time_minutes) for r in raw])
    readings = []
    for i, r in enumerate(raw):
        signal = percent_signal(r.impedance, baseline)
        impedance = r.impedance
        if impedance is not None and abs(impedance) > impedance_limit:
            impedance = None
        if signal is not None and abs(signal) > signal_limit:
            signal = None
        gas_concentration = None
        if annotate and not math.isnan(concentrations[i]):
            gas_concentration = float(concentrations[i])
        readings.append(SensorReading(
            original_time=r.original_time,
            time_seconds=r.time_seconds,
            time_minutes=r.time_minutes,
            impedance=impedance,
            phase=r.phase,
            signal=signal,
            gas_concentration=gas_concentration,
        ))

    logger.info(f"Processing {file_name}: completed ({len(readings)} rows)")
    return SensorTable(
        file_name=file_name,
        readings=tuple(readings),
        sensor_number=sensor_number,
        original_file_name=original_file_name or file_name,
        baseline_index=baseline_index,
        baseline_impedance=baseline,
    )

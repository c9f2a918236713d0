"""Tabular views and CSV/JSON export of analysis results."""

import json
import math
from pathlib import Path
from typing import Dict, Sequence

import numpy as np
import pandas as pd

from .exposure_events import ExposureEvent
from .gas_profile import ConcentrationPoint
from .sensor_signal import SensorTable
from .spectroscopy import SpectroscopySweep, pivot_sweeps, sweep_frequencies


def profile_to_frame(profile: Sequence[ConcentrationPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [{'time_min': p.time_minutes, 'conc': p.concentration} for p in profile],
        columns=['time_min', 'conc'],
    )


def events_to_frame(events: Sequence[ExposureEvent]) -> pd.DataFrame:
    return pd.DataFrame(
        [{'start_time': e.start_time, 'end_time': e.end_time, 'concentration': e.concentration}
         for e in events],
        columns=['start_time', 'end_time', 'concentration'],
    )


def _write_json(path: Path, payload: Dict[str, object]):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open('w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2)


def _write_csv(df: pd.DataFrame, path: Path, na_rep: str) -> Path:
    # Infinite concentrations are exported like missing values
    df = df.replace([np.inf, -np.inf], np.nan)
    df.to_csv(path, index=False, na_rep=na_rep)
    return path


def _finite_or_none(value):
    if value is None or not math.isfinite(value):
        return None
    return value


def sensor_csv_name(table: SensorTable) -> str:
    if table.sensor_number is not None:
        return f"sensor_{table.sensor_number}.csv"
    return f"{Path(table.file_name).stem}_processed.csv"


def save_analysis(profile: Sequence[ConcentrationPoint],
                  events: Sequence[ExposureEvent],
                  tables: Sequence[SensorTable],
                  out_dir: str,
                  na_rep: str = 'N/A') -> Dict[str, str]:
    """Write the profile, events, sensor tables and a JSON summary.

    Returns:
        Mapping of artifact name to written path.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    paths: Dict[str, str] = {}

    paths['gas_profile'] = str(_write_csv(profile_to_frame(profile), out / 'gas_profile.csv', na_rep))
    paths['exposure_events'] = str(_write_csv(events_to_frame(events), out / 'exposure_events.csv', na_rep))

    sensors = []
    for table in tables:
        csv_path = _write_csv(table.to_frame(), out / sensor_csv_name(table), na_rep)
        paths[f"sensor:{table.file_name}"] = str(csv_path)
        sensors.append({
            'file_name': table.file_name,
            'original_file_name': table.original_file_name,
            'sensor_number': table.sensor_number,
            'rows': len(table),
            'baseline_index': table.baseline_index,
            'baseline_impedance': _finite_or_none(table.baseline_impedance),
            'csv': csv_path.name,
        })

    summary = {
        'profile_points': len(profile),
        'exposure_events': [
            {'start_time': e.start_time, 'end_time': e.end_time,
             'concentration': _finite_or_none(e.concentration)}
            for e in events
        ],
        'sensors': sensors,
    }
    summary_path = out / 'summary.json'
    _write_json(summary_path, summary)
    paths['summary'] = str(summary_path)
    return paths


def save_spectroscopy(sweeps: Sequence[SpectroscopySweep],
                      out_dir: str,
                      na_rep: str = 'N/A') -> Dict[str, str]:
    """Write impedance and phase tables (time by frequency) and a JSON summary."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    paths: Dict[str, str] = {}
    if sweeps:
        paths['impedance'] = str(_write_csv(pivot_sweeps(sweeps, 'impedance'), out / 'impedance.csv', na_rep))
        paths['phase'] = str(_write_csv(pivot_sweeps(sweeps, 'phase'), out / 'phase.csv', na_rep))

    summary = {
        'sweeps': [
            {'file_name': s.file_name,
             'timestamp': s.timestamp.isoformat() if s.timestamp else None,
             'relative_time_min': s.relative_time_minutes,
             'points': len(s)}
            for s in sweeps
        ],
        'frequencies': sweep_frequencies(sweeps),
    }
    summary_path = out / 'spectroscopy_summary.json'
    _write_json(summary_path, summary)
    paths['summary'] = str(summary_path)
    return paths

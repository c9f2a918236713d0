"""Core numeric pipeline for gas exposure experiments.

Modules:
- time_parsing: reference durations and instrument timestamps
- gas_profile: concentration breakpoints from the flow step schedule
- exposure_events: intervals of constant nonzero concentration
- sampler: previous-value hold concentration lookup
- sensor_signal: baseline-normalized sensor signal tables
- spectroscopy: impedance sweeps on a common time axis
- exports: DataFrame views and CSV/JSON output
"""

from .time_parsing import time_string_to_minutes, parse_custom_datetime, parse_sweep_timestamp
from .gas_profile import (
    FlowStep,
    ConcentrationPoint,
    GasProfileConfig,
    parse_flow_steps,
    step_concentration,
    build_concentration_profile,
)
from .exposure_events import ExposureEvent, identify_exposure_events
from .sampler import interpolate_concentration, interpolate_concentrations
from .sensor_signal import SensorReading, SensorTable, process_sensor_rows
from .file_names import extract_sensor_number, sort_by_sensor_number
from .spectroscopy import SpectroscopySweep, parse_spectroscopy_text, process_spectroscopy_sweeps, pivot_sweeps
from .exports import profile_to_frame, events_to_frame, save_analysis, save_spectroscopy

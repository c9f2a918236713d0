"""
Run orchestration for gas exposure experiments.
"""
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from datetime import datetime
import logging
from config.config_loader import load_config, get_section
from .exceptions import ConfigurationError
from .core.gas_profile import (
    ConcentrationPoint,
    GasProfileConfig,
    Profile,
    build_concentration_profile,
    parse_flow_steps,
)
from .core.exposure_events import ExposureEvent, identify_exposure_events
from .core.sensor_signal import (
    IMPEDANCE_COLUMN,
    IMPEDANCE_LIMIT,
    PHASE_COLUMN,
    SIGNAL_LIMIT,
    TIME_COLUMN,
    SensorTable,
    process_sensor_rows,
)
from .core.spectroscopy import SpectroscopySweep, parse_spectroscopy_text, process_spectroscopy_sweeps
from .core.time_parsing import time_string_to_minutes

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class SensorFile:
    """Already-parsed rows of one sensor time-series file."""
    name: str
    rows: Sequence[Sequence[Any]]
    original_name: Optional[str] = None
    sensor_number: Optional[int] = None


@dataclass(frozen=True)
class SweepFile:
    """Raw text of one impedance spectroscopy sweep file."""
    name: str
    text: str
    original_name: Optional[str] = None
    modified_time: Optional[datetime] = None


@dataclass(frozen=True)
class AnalysisResult:
    profile: Profile = ()
    events: Tuple[ExposureEvent, ...] = ()
    tables: Tuple[SensorTable, ...] = ()
    profile_available: bool = False
    reference_time_minutes: Optional[float] = None
    skipped_files: Tuple[str, ...] = field(default_factory=tuple)


class ExposureAnalyzer:
    """Builds the gas profile and processes sensor files for one run."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize the analyzer.

        Args:
            config: Configuration dictionary; the default config.yaml is
                loaded when omitted.
        """
        self.config = config if config is not None else load_config()

    def reference_time_minutes(self, reference_time: Optional[str] = None) -> float:
        """
        Parse the baseline reference time.

        Raises:
            ConfigurationError: if the time string is not ``[HH:]MM:SS[.sss]``.
        """
        text = reference_time
        if text is None:
            text = get_section(self.config, 'sensor').get('reference_time')
        minutes = time_string_to_minutes(None if text is None else str(text))
        if minutes is None:
            raise ConfigurationError(
                f'Invalid Baseline Time format: "{text}". Please use HH:MM:SS.s or MM:SS.s.')
        return minutes

    def build_profile(self, gas_flow_rows: Sequence[Sequence[Any]]) -> Tuple[Profile, List[ExposureEvent]]:
        """
        Compute the concentration profile and exposure events from gas flow rows.

        Raises:
            ValueError: if the table holds no valid step or the configuration
                is invalid (ConfigurationError is a ValueError).
        """
        profile_cfg = GasProfileConfig.from_dict(get_section(self.config, 'gas_profile'))
        steps = parse_flow_steps(gas_flow_rows)
        logger.info(f"Gas flow table parsed ({len(steps)} steps); calculating concentration profile")
        profile = build_concentration_profile(steps, profile_cfg)
        events = identify_exposure_events(profile)
        logger.info(f"Identified {len(events)} gas exposure events")
        return profile, events

    def process_sensor_files(self,
                             files: Sequence[SensorFile],
                             reference_time_minutes: float,
                             profile: Sequence[ConcentrationPoint] = (),
                             profile_available: bool = False,
                             progress: Optional[ProgressCallback] = None) -> List[SensorTable]:
        """
        Process each sensor file independently.

        Files without rows are skipped. ``progress`` receives the number of
        completed files and the total after every file.
        """
        sensor_cfg = get_section(self.config, 'sensor')
        options = {
            'time_col': int(sensor_cfg.get('time_column', TIME_COLUMN)),
            'impedance_col': int(sensor_cfg.get('impedance_column', IMPEDANCE_COLUMN)),
            'phase_col': int(sensor_cfg.get('phase_column', PHASE_COLUMN)),
            'impedance_limit': float(sensor_cfg.get('impedance_limit', IMPEDANCE_LIMIT)),
            'signal_limit': float(sensor_cfg.get('signal_limit', SIGNAL_LIMIT)),
        }

        logger.info(f"Processing {len(files)} time-series sensor files")
        tables: List[SensorTable] = []
        for i, sensor_file in enumerate(files):
            logger.info(f"Processing time-series file: {sensor_file.name}")
            table = process_sensor_rows(
                sensor_file.rows,
                reference_time_minutes,
                profile=profile,
                profile_available=profile_available,
                file_name=sensor_file.name,
                sensor_number=sensor_file.sensor_number,
                original_file_name=sensor_file.original_name,
                **options,
            )
            if table is not None:
                tables.append(table)
            if progress is not None:
                progress(i + 1, len(files))
        return tables

    def analyze(self,
                files: Sequence[SensorFile],
                gas_flow_rows: Optional[Sequence[Sequence[Any]]] = None,
                reference_time: Optional[str] = None,
                progress: Optional[ProgressCallback] = None) -> AnalysisResult:
        """
        Run the full time-series analysis.

        A failing gas flow table is logged and the run continues without
        concentration annotation. An invalid reference time aborts the run.

        Args:
            files: Parsed sensor files.
            gas_flow_rows: Parsed gas flow table rows, or None if absent.
            reference_time: Overrides ``sensor.reference_time`` from config.
            progress: Callback receiving (completed files, total files).

        Returns:
            AnalysisResult with profile, events and sensor tables.
        """
        ref_minutes = self.reference_time_minutes(reference_time)

        profile: Profile = ()
        events: List[ExposureEvent] = []
        if gas_flow_rows is None:
            logger.info("No gas flow table provided; gas concentration analysis will be skipped")
            profile_available = True
        else:
            try:
                profile, events = self.build_profile(gas_flow_rows)
                profile_available = True
            except ValueError as e:
                logger.error(f"Error processing gas flow table: {e}")
                profile, events = (), []
                profile_available = False

        tables = self.process_sensor_files(
            files, ref_minutes, profile=profile,
            profile_available=profile_available, progress=progress,
        )
        processed = {t.file_name for t in tables}
        skipped = tuple(f.name for f in files if f.name not in processed)
        logger.info(f"Time-series analysis finished: {len(tables)} tables, {len(skipped)} skipped")

        return AnalysisResult(
            profile=tuple(profile),
            events=tuple(events),
            tables=tuple(tables),
            profile_available=profile_available,
            reference_time_minutes=ref_minutes,
            skipped_files=skipped,
        )

    def analyze_spectroscopy(self,
                             files: Sequence[SweepFile],
                             progress: Optional[ProgressCallback] = None) -> List[SpectroscopySweep]:
        """
        Parse impedance sweeps and order them on a common time axis.

        Args:
            files: Sweep files; the acquisition time is read from
                ``original_name`` (or ``name``), falling back to
                ``modified_time``.
            progress: Callback receiving (completed files, total files).

        Returns:
            Sweeps sorted by minutes since the first parsed sweep.
        """
        if not files:
            logger.warning("No spectroscopy files to process")
            return []

        logger.info(f"Processing {len(files)} spectroscopy sensor files")
        parsed = []
        for sweep_file in files:
            logger.info(f"Processing spectroscopy file: {sweep_file.name}")
            parsed.append(parse_spectroscopy_text(
                sweep_file.text,
                file_name=sweep_file.original_name or sweep_file.name,
                effective_name=sweep_file.name,
                fallback_timestamp=sweep_file.modified_time,
            ))
        sweeps = process_spectroscopy_sweeps(parsed, progress=progress)
        logger.info(f"Spectroscopy analysis finished: {len(sweeps)} of {len(files)} sweeps")
        return sweeps

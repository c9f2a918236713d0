"""Gas concentration profile from a flow controller step schedule."""

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from ..exceptions import ConfigurationError
from .values import parse_float

logger = logging.getLogger(__name__)

# Flow controller transitions are modelled as taking one second
TRANSITION_SECONDS = 1.0


@dataclass(frozen=True)
class FlowStep:
    """One row of the gas flow table."""
    target_flow: float
    duration_seconds: float


@dataclass(frozen=True)
class ConcentrationPoint:
    """Breakpoint of the piecewise-constant concentration curve."""
    time_minutes: float
    concentration: float


@dataclass(frozen=True)
class GasProfileConfig:
    total_flowrate: float = 500.0
    cylinder_concentration: float = 0.0

    @classmethod
    def from_dict(cls, section: dict) -> 'GasProfileConfig':
        """Build from the ``gas_profile`` config section.

        Raises:
            ConfigurationError: if either value is not numeric.
        """
        total = parse_float(section.get('total_flowrate', cls.total_flowrate))
        cylinder = parse_float(section.get('cylinder_concentration', cls.cylinder_concentration))
        if total is None:
            raise ConfigurationError(
                f"Invalid total flow rate: {section.get('total_flowrate')!r}")
        if cylinder is None:
            raise ConfigurationError(
                f"Invalid cylinder gas concentration: {section.get('cylinder_concentration')!r}")
        return cls(total_flowrate=total, cylinder_concentration=cylinder)


Profile = Tuple[ConcentrationPoint, ...]


def parse_flow_steps(rows: Sequence[Sequence[Any]]) -> List[FlowStep]:
    """Read flow steps from headerless gas flow table rows.

    Field 2 holds the target flow and field 3 the step duration in seconds.
    Rows that are too short or non-numeric are dropped with a warning.

    Raises:
        ValueError: if no row yields a valid step.
    """
    steps: List[FlowStep] = []
    for index, row in enumerate(rows, start=1):
        if row is None or len(row) < 3:
            logger.warning(f"Gas flow row {index} is invalid (expected at least 3 columns); skipping")
            continue
        target_flow = parse_float(row[1])
        duration = parse_float(row[2])
        if target_flow is None or duration is None:
            logger.warning(f"Gas flow row {index} has non-numeric flow or duration; skipping")
            continue
        steps.append(FlowStep(target_flow=target_flow, duration_seconds=duration))

    if not steps:
        raise ValueError("No valid data parsed from gas flow table")
    return steps


def step_concentration(target_flow: float, config: GasProfileConfig) -> float:
    """Concentration delivered by a step; ``inf`` for a flow through a zero total."""
    if config.total_flowrate == 0:
        if config.cylinder_concentration > 0 and target_flow > 0:
            return math.inf
        return 0.0
    return config.cylinder_concentration * target_flow / config.total_flowrate


def deduplicate_points(points: Sequence[ConcentrationPoint]) -> List[ConcentrationPoint]:
    """Drop points identical in time and concentration to their predecessor."""
    result: List[ConcentrationPoint] = []
    for point in points:
        if result and result[-1] == point:
            continue
        result.append(point)
    return result


def build_concentration_profile(steps: Sequence[FlowStep], config: GasProfileConfig) -> Profile:
    """Convert flow steps into ordered concentration breakpoints.

    Every step closes the previous segment at the current time, adds a
    transition point one second later when the concentration changes and
    closes its own segment after its duration. Consecutive duplicates are
    removed in a single pass afterwards.

    Args:
        steps: Flow steps in chronological order.
        config: Total flow rate and cylinder concentration.

    Returns:
        Breakpoints starting with ``(0, 0)``, non-decreasing in time.

    Raises:
        ConfigurationError: if a step has a negative duration.
    """
    origin = ConcentrationPoint(0.0, 0.0)
    points: List[ConcentrationPoint] = [origin]
    current_seconds = 0.0
    current_conc = 0.0

    for index, step in enumerate(steps, start=1):
        if step.duration_seconds < 0:
            raise ConfigurationError(
                f"Gas flow step {index} has a negative duration ({step.duration_seconds} s)")
        if step.duration_seconds == 0:
            logger.warning(f"Gas flow step {index} has zero duration; skipping")
            continue

        previous_conc = current_conc
        current_conc = step_concentration(step.target_flow, config)

        points.append(ConcentrationPoint(current_seconds / 60.0, previous_conc))
        if current_conc != previous_conc:
            # Steps shorter than the transition end at the marker
            ramp = min(TRANSITION_SECONDS, step.duration_seconds)
            points.append(ConcentrationPoint((current_seconds + ramp) / 60.0, current_conc))

        current_seconds += step.duration_seconds
        points.append(ConcentrationPoint(current_seconds / 60.0, current_conc))

    profile = deduplicate_points(points)
    if profile[0] != origin:
        profile = deduplicate_points([origin] + profile)
    return tuple(profile)

"""Exposure events: maximal intervals of constant nonzero concentration."""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .gas_profile import ConcentrationPoint


@dataclass(frozen=True)
class ExposureEvent:
    start_time: float
    end_time: float
    concentration: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class _ActiveEvent:
    start_time: float
    end_time: float
    concentration: float

    def freeze(self) -> ExposureEvent:
        return ExposureEvent(self.start_time, self.end_time, self.concentration)


def _start(point: ConcentrationPoint) -> Optional[_ActiveEvent]:
    if point.concentration > 0:
        return _ActiveEvent(point.time_minutes, point.time_minutes, point.concentration)
    return None


def identify_exposure_events(profile: Sequence[ConcentrationPoint]) -> List[ExposureEvent]:
    """Scan time-ordered breakpoints for exposure events.

    The scanner is either idle or tracking one active event. A point with the
    active concentration at a strictly later time extends the event; any other
    point closes it and may start the next one. Points sharing a timestamp
    never extend an event, so zero-length events are never emitted.

    An active event made of a single breakpoint holds its concentration until
    the next breakpoint, so ``[(0, 0), (5, 20), (10, 0)]`` gives one event
    from 5 to 10.
    """
    events: List[ExposureEvent] = []
    active: Optional[_ActiveEvent] = None

    for point in profile:
        if active is None:
            active = _start(point)
            continue

        later = point.time_minutes > active.end_time
        if point.concentration == active.concentration and later:
            active.end_time = point.time_minutes
            continue

        if later and active.end_time == active.start_time:
            active.end_time = point.time_minutes
        if active.end_time > active.start_time:
            events.append(active.freeze())
        active = _start(point)

    if active is not None and active.end_time > active.start_time:
        last = active.freeze()
        if not events or events[-1] != last:
            events.append(last)
    return events

import math

import numpy as np
import pytest

from gas_exposure.core.exposure_events import ExposureEvent, identify_exposure_events
from gas_exposure.core.gas_profile import (
    ConcentrationPoint,
    FlowStep,
    GasProfileConfig,
    build_concentration_profile,
)


def _points(pairs):
    return [ConcentrationPoint(float(t), float(c)) for t, c in pairs]


def test_single_breakpoint_event_held_until_next_point():
    events = identify_exposure_events(_points([(0, 0), (5, 20), (10, 0)]))
    assert events == [ExposureEvent(start_time=5.0, end_time=10.0, concentration=20.0)]


def test_empty_and_zero_profiles_have_no_events():
    assert identify_exposure_events([]) == []
    assert identify_exposure_events(_points([(0, 0), (1, 0), (2, 0)])) == []


def test_events_from_built_profile():
    steps = [FlowStep(0, 60), FlowStep(100, 120), FlowStep(0, 60), FlowStep(50, 60)]
    profile = build_concentration_profile(steps, GasProfileConfig(500, 50))
    events = identify_exposure_events(profile)

    assert len(events) == 2
    first, second = events
    assert first.start_time == pytest.approx(1 + 1 / 60)
    assert first.end_time == pytest.approx(3.0)
    assert first.concentration == 10.0
    assert second.start_time == pytest.approx(4 + 1 / 60)
    assert second.end_time == pytest.approx(5.0)
    assert second.concentration == 5.0


def test_event_still_active_at_end_is_emitted_once():
    events = identify_exposure_events(_points([(0, 0), (1, 10), (4, 10)]))
    assert events == [ExposureEvent(1.0, 4.0, 10.0)]


def test_same_time_points_do_not_extend():
    events = identify_exposure_events(_points([(0, 0), (2, 10), (2, 10), (2, 10)]))
    assert events == []


def test_concentration_change_splits_events():
    events = identify_exposure_events(_points([(0, 0), (1, 10), (3, 10), (3, 20), (6, 20), (7, 0)]))
    assert events == [ExposureEvent(1.0, 3.0, 10.0), ExposureEvent(3.0, 6.0, 20.0)]


def test_infinite_concentration_counts_as_exposure():
    profile = build_concentration_profile([FlowStep(10, 120)], GasProfileConfig(0, 50))
    events = identify_exposure_events(profile)
    assert len(events) == 1
    assert math.isinf(events[0].concentration)
    assert events[0].duration == pytest.approx(2 - 1 / 60)


@pytest.mark.parametrize("seed", range(8))
def test_events_cover_nonzero_segments(seed):
    rng = np.random.default_rng(seed)
    n = int(rng.integers(2, 10))
    steps = [FlowStep(float(rng.choice([0, 50, 100])), float(rng.integers(30, 300))) for _ in range(n)]
    profile = build_concentration_profile(steps, GasProfileConfig(500, 50))
    events = identify_exposure_events(profile)

    assert all(e.end_time > e.start_time for e in events)
    assert all(a.end_time <= b.start_time for a, b in zip(events, events[1:]))
    nonzero = {p.concentration for p in profile if p.concentration > 0}
    assert {e.concentration for e in events} == nonzero

"""Previous-value hold sampling of a concentration profile."""

import math
from typing import Optional, Sequence

import numpy as np

from .gas_profile import ConcentrationPoint


def interpolate_concentration(profile: Sequence[ConcentrationPoint],
                              time_minutes: Optional[float]) -> Optional[float]:
    """Concentration at ``time_minutes`` using previous-value hold.

    Times before the first breakpoint take the first concentration; times
    after the last take the last one.

    Returns:
        The held concentration, or None if the time is undefined or the
        profile is empty.
    """
    if time_minutes is None or math.isnan(time_minutes) or not profile:
        return None
    if time_minutes < profile[0].time_minutes:
        return profile[0].concentration

    # Binary search for the last breakpoint with time <= time_minutes
    lo, hi = 0, len(profile)
    while lo < hi:
        mid = (lo + hi) // 2
        if profile[mid].time_minutes <= time_minutes:
            lo = mid + 1
        else:
            hi = mid
    return profile[lo - 1].concentration


def interpolate_concentrations(profile: Sequence[ConcentrationPoint],
                               times: Sequence[float]) -> np.ndarray:
    """Vectorized :func:`interpolate_concentration`; undefined results are NaN."""
    query = np.asarray(times, dtype=float)
    if not profile:
        return np.full(query.shape, np.nan)

    knots = np.array([p.time_minutes for p in profile], dtype=float)
    values = np.array([p.concentration for p in profile], dtype=float)
    idx = np.searchsorted(knots, query, side='right') - 1
    result = values[np.clip(idx, 0, None)]
    result = np.where(np.isnan(query), np.nan, result)
    return result

# severity.py
"""
Good / warning / error classification of a metric value against its ideal range,
with a Schmitt-trigger style hysteresis so jitter near a boundary does not flicker.
"""

from enum import Enum
from typing import Optional, Tuple, Union


class Severity(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    ERROR = "error"


TIERS = [Severity.GOOD, Severity.WARNING, Severity.ERROR]

# Per-frame quality contribution of each tier
SEVERITY_SCORE = {
    Severity.GOOD: 1.0,
    Severity.WARNING: 0.5,
    Severity.ERROR: 0.0,
}


def base_severity(value: float, ideal_range: Tuple[float, float], warning_margin: float = 10) -> Severity:
    """Tier of a value without any hysteresis"""
    min_ideal, max_ideal = ideal_range
    if min_ideal <= value <= max_ideal:
        return Severity.GOOD
    if min_ideal - warning_margin <= value <= max_ideal + warning_margin:
        return Severity.WARNING
    return Severity.ERROR


def _reachable(bound: float, value_limits, lower: bool) -> bool:
    # A boundary sitting on the physical limit of the measurement can never be
    # crossed from outside, so it must not hold a value in the worse tier.
    if value_limits is None:
        return True
    limit = value_limits[0] if lower else value_limits[1]
    if limit is None:
        return True
    return bound > limit if lower else bound < limit


def classify_severity(value: float, ideal_range: Tuple[float, float], warning_margin: float = 10,
                      previous: Optional[Union[Severity, str]] = None, hysteresis_buffer: float = 3,
                      value_limits: Optional[Tuple[Optional[float], Optional[float]]] = None) -> Severity:
    """
    Classify value into good / warning / error using the previous frame's tier.

    The result moves from the previous tier toward the base tier one adjacent
    step at a time. Worsening by a step requires the value to lie more than
    hysteresis_buffer outside the better tier's band; improving by a step
    requires it to lie more than hysteresis_buffer inside the better tier's band.
    value_limits optionally names the physical range of the measurement
    (e.g. (0, 180) for joint angles) so boundaries on that range are not damped.
    """
    base = base_severity(value, ideal_range, warning_margin)
    if previous is None:
        return base

    min_ideal, max_ideal = ideal_range
    bands = [
        (min_ideal, max_ideal),
        (min_ideal - warning_margin, max_ideal + warning_margin),
    ]

    current = TIERS.index(Severity(previous))
    target = TIERS.index(base)

    while current < target:
        lo, hi = bands[current]
        if lo - hysteresis_buffer <= value <= hi + hysteresis_buffer:
            break
        current += 1

    while current > target:
        lo, hi = bands[current - 1]
        near_lo = lo <= value <= lo + hysteresis_buffer and _reachable(lo, value_limits, lower=True)
        near_hi = hi - hysteresis_buffer <= value <= hi and _reachable(hi, value_limits, lower=False)
        if near_lo or near_hi:
            break
        current -= 1

    return TIERS[current]

# smoothing.py
"""
Temporal smoothing for per-frame metric values.
An outlier-trimmed mean of the recent history is blended with the new raw
sample so a single-frame pose glitch barely moves the output.
"""

import math
from collections import deque
from typing import Dict, Iterable

import numpy as np

from config import config


def smooth_value(raw: float, history: Iterable[float], weight: float = 0.2,
                 trim_fraction: float = 0.1, min_trim_samples: int = 10) -> float:
    """
    Blend a raw sample with the mean of its prior history.
    With at least min_trim_samples values the lowest and highest
    floor(len * trim_fraction) values are dropped before averaging.
    An empty history returns the raw value unchanged.
    """
    values = list(history)
    if not values:
        return raw

    if len(values) >= min_trim_samples:
        cutoff = math.floor(len(values) * trim_fraction)
        values = sorted(values)
        if cutoff > 0:
            values = values[cutoff:len(values) - cutoff]

    history_mean = float(np.mean(values))
    return weight * raw + (1 - weight) * history_mean


class MetricSmoother:
    """
    Per-session smoothing state: one bounded history of raw values per metric.
    Each call smooths against the prior samples, then records the new one.
    """

    def __init__(self, window: int = None, weight: float = None,
                 trim_fraction: float = None, min_trim_samples: int = None):
        self.window = window or config.smoothing_window
        self.weight = config.smoothing_weight if weight is None else weight
        self.trim_fraction = config.smoothing_trim_fraction if trim_fraction is None else trim_fraction
        self.min_trim_samples = min_trim_samples or config.smoothing_min_trim_samples
        self.histories: Dict[str, deque] = {}

    def smooth(self, name: str, raw: float) -> float:
        history = self.histories.setdefault(name, deque(maxlen=self.window))
        smoothed = smooth_value(raw, history, self.weight,
                                self.trim_fraction, self.min_trim_samples)
        history.append(raw)
        return smoothed

    def reset(self):
        self.histories.clear()

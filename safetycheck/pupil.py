"""
Pupil/blink fatigue scoring over one fixed measurement window.

The score blends three sub-scores: blink count (40%), mean eye-open ratio
(35%) and blink interval consistency (25%). Inputs are the blink intervals
and per-frame eye-open ratios extracted by the face detector; the window
length is the caller's concern and is not checked here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

import config

MIN_HEALTHY_BLINKS = 3
MAX_HEALTHY_BLINKS = 8
OPTIMAL_BLINKS = 5

BLINK_WEIGHT = 0.40
EYE_OPEN_WEIGHT = 0.35
CONSISTENCY_WEIGHT = 0.25

NEUTRAL_CONSISTENCY = 50.0


def _clamp(val, low, high):
    return max(low, min(high, val))


def _finite(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(list(values), dtype=float)
    return arr[np.isfinite(arr)]


def blink_count_score(blinks: int) -> float:
    n = float(blinks)
    if n < MIN_HEALTHY_BLINKS:
        # too few blinks: over-focus or drowsiness
        score = _clamp(n / MIN_HEALTHY_BLINKS * 60, 0.0, 60.0)
    elif n > MAX_HEALTHY_BLINKS:
        # too many: dry or strained eyes
        score = _clamp(100 - (n - MAX_HEALTHY_BLINKS) * 15, 40.0, 100.0)
    else:
        score = 100 - abs(n - OPTIMAL_BLINKS) * 8
    return _clamp(score, 0.0, 100.0)


def eye_open_score(eye_open_ratios: Sequence[float]) -> float:
    ratios = _finite(eye_open_ratios)
    avg = float(ratios.mean()) if ratios.size else config.EYE_OPEN_DEFAULT

    if avg >= 0.85:
        return 100.0
    if avg >= 0.75:
        return 80 + (avg - 0.75) * 200
    if avg >= 0.65:
        return 60 + (avg - 0.65) * 200
    if avg >= 0.50:
        return 40 + (avg - 0.50) * 133
    return _clamp(avg / 0.5 * 40, 0.0, 40.0)


def interval_consistency_score(blink_intervals_ms: Sequence[float]) -> float:
    intervals = _finite(blink_intervals_ms)
    if intervals.size < 3:
        return NEUTRAL_CONSISTENCY

    std_dev = float(np.std(intervals))  # population
    if std_dev <= 800:
        return 100.0
    if std_dev <= 1500:
        return 100 - (std_dev - 800) / 7
    if std_dev <= 3000:
        return 60 - (std_dev - 1500) / 25
    return _clamp(60 - (std_dev - 3000) / 50, 0.0, 60.0)


def compute_fatigue_score(blink_intervals_ms: Sequence[float], eye_open_ratios: Sequence[float]) -> float:
    """Weighted fatigue score in [0, 100]; higher means more alert."""
    blink_score = blink_count_score(len(blink_intervals_ms))
    open_score = eye_open_score(eye_open_ratios)
    consistency = interval_consistency_score(blink_intervals_ms)

    final = blink_score * BLINK_WEIGHT + open_score * EYE_OPEN_WEIGHT + consistency * CONSISTENCY_WEIGHT
    return float(_clamp(final, 0.0, 100.0))


def describe_fatigue(score: float) -> str:
    if score >= 80:
        return "Eye condition is very good"
    if score >= 60:
        return "Slight fatigue detected"
    if score >= 40:
        return "Rest is needed"
    return "Severe fatigue"


def average_eye_open(left: Optional[float], right: Optional[float]) -> float:
    left = config.EYE_OPEN_DEFAULT if left is None else left
    right = config.EYE_OPEN_DEFAULT if right is None else right
    return (left + right) / 2


@dataclass
class BlinkDetector:
    """
    Turns per-frame (eye_open_ratio, timestamp_ms) samples into blink intervals.

    A blink starts when the ratio drops below the closed threshold and
    completes when it rises back above it; the interval is measured from the
    previous completed blink, or from ``start_ms`` for the first one.
    """

    start_ms: int
    closed_threshold: float = config.EYE_CLOSED_THRESHOLD
    blink_intervals: List[int] = field(default_factory=list)
    eye_open_ratios: List[float] = field(default_factory=list)
    _last_blink_ms: int = field(init=False)
    _eye_closed: bool = field(init=False, default=False)

    def __post_init__(self):
        self._last_blink_ms = self.start_ms

    def add_sample(self, eye_open_ratio: float, timestamp_ms: int) -> bool:
        """Record one frame; returns True when it completes a blink."""
        self.eye_open_ratios.append(eye_open_ratio)
        if eye_open_ratio < self.closed_threshold and not self._eye_closed:
            self._eye_closed = True
        elif eye_open_ratio > self.closed_threshold and self._eye_closed:
            self._eye_closed = False
            self.blink_intervals.append(timestamp_ms - self._last_blink_ms)
            self._last_blink_ms = timestamp_ms
            return True
        return False

    def feed(self, samples) -> "BlinkDetector":
        for ratio, timestamp_ms in samples:
            self.add_sample(ratio, timestamp_ms)
        return self

    @property
    def blink_count(self) -> int:
        return len(self.blink_intervals)

    def score(self) -> float:
        return compute_fatigue_score(self.blink_intervals, self.eye_open_ratios)

    def summary(self, duration_ms: int = config.PUPIL_MEASUREMENT_MS) -> Dict:
        return {
            "blinkCount": self.blink_count,
            "avgBlinkInterval": float(np.mean(self.blink_intervals)) if self.blink_intervals else 0.0,
            "avgEyeOpenRatio": float(np.mean(self.eye_open_ratios)) if self.eye_open_ratios else 0.0,
            "measurementDuration": duration_ms,
        }

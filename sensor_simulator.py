"""
Virtual measurement simulator for the safety-check flow.
Generates per-frame eye-open ratio streams for the pupil measurement window,
with optional CSV playback, plus stand-in tremor and heart-signal scores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

import config

PROFILES: Dict[str, Dict[str, float]] = {
    # mean blink gap (ms), gap jitter (ms), open-eye ratio, ratio noise
    "alert": {"gap": 2800, "jitter": 300, "open": 0.92, "noise": 0.03},
    "tired": {"gap": 5500, "jitter": 2500, "open": 0.62, "noise": 0.08},
}

BLINK_DURATION_MS = 150
CLOSED_RATIO = 0.05


def _bounded(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


@dataclass
class BlinkStreamSimulator:
    profile: str = "alert"
    fps: int = 30
    duration_ms: int = config.PUPIL_MEASUREMENT_MS
    seed: Optional[int] = None
    dataset: Optional[pd.DataFrame] = None
    rng: np.random.Generator = field(init=False)

    def __post_init__(self):
        if self.profile not in PROFILES:
            raise ValueError(f"Unknown profile: {self.profile}")
        self.rng = np.random.default_rng(self.seed)

    def load_csv_dataset(self, csv_path: Path) -> None:
        """Load a recorded stream. Expected columns: eye_open_ratio, timestamp_ms."""
        df = pd.read_csv(csv_path)
        expected = {"eye_open_ratio", "timestamp_ms"}
        missing = expected - set(df.columns)
        if missing:
            raise ValueError(f"Dataset missing columns: {missing}")
        self.dataset = df.reset_index(drop=True)

    def _blink_starts(self) -> List[float]:
        params = PROFILES[self.profile]
        starts = []
        t = 0.0
        while True:
            t += _bounded(self.rng.normal(params["gap"], params["jitter"]), 400, 20000)
            if t + BLINK_DURATION_MS >= self.duration_ms:
                return starts
            starts.append(t)

    def stream(self, start_ms: int = 0) -> List[Tuple[float, int]]:
        """(eye_open_ratio, timestamp_ms) samples covering one measurement window."""
        if self.dataset is not None and len(self.dataset) > 0:
            return [
                (float(row.eye_open_ratio), int(row.timestamp_ms)) for row in self.dataset.itertuples(index=False)
            ]

        params = PROFILES[self.profile]
        blinks = self._blink_starts()
        samples = []
        for frame in range(self.duration_ms * self.fps // 1000):
            t = frame * 1000.0 / self.fps
            if any(b <= t < b + BLINK_DURATION_MS for b in blinks):
                ratio = CLOSED_RATIO
            else:
                ratio = _bounded(self.rng.normal(params["open"], params["noise"]), 0.0, 1.0)
            samples.append((ratio, start_ms + int(t)))
        return samples

    def channel_score(self) -> float:
        """Stand-in for a pre-computed tremor or heart-signal score."""
        mean = 85.0 if self.profile == "alert" else 55.0
        return round(_bounded(self.rng.normal(mean, 8.0), 1.0, 100.0), 1)

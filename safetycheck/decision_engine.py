"""
Deterministic safety decision engine: combines the checklist score with the
tremor, pupil and heart-signal scores, classifies the result and generates
recommendations.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import config


class SafetyLevel(str, enum.Enum):
    SAFE = "SAFE"
    CAUTION = "CAUTION"
    DANGER = "DANGER"

    @classmethod
    def from_score(cls, score: float) -> "SafetyLevel":
        if score >= config.SAFE_THRESHOLD:
            return cls.SAFE
        if score >= config.CAUTION_THRESHOLD:
            return cls.CAUTION
        return cls.DANGER


def classify(score: float) -> SafetyLevel:
    return SafetyLevel.from_score(score)


LEVEL_RECOMMENDATIONS: Dict[SafetyLevel, Tuple[str, ...]] = {
    SafetyLevel.DANGER: (
        "Rest immediately and report to your supervisor.",
        "Hydrate and rest sufficiently.",
    ),
    SafetyLevel.CAUTION: (
        "Stretch lightly before starting work.",
        "Take periodic breaks while working.",
    ),
    SafetyLevel.SAFE: ("Condition is safe. Proceed with work.",),
}

TREMOR_CAUTION = "Hand tremor detected. Take care during precision work."
PUPIL_CAUTION = "Fatigue is high. Get sufficient rest."
PPG_CAUTION = "Heart rate is unstable. Stress management is needed."


@dataclass(frozen=True)
class RiskFactor:
    channel: str
    description: str
    severity: str  # "HIGH" | "MEDIUM"


@dataclass(frozen=True)
class SafetyDecision:
    final_score: float
    level: SafetyLevel
    recommendations: List[str]
    risk_factors: List[RiskFactor]


def _clamp(val, low, high):
    return max(low, min(high, val))


def normalize_channel(value) -> float:
    """Coerce one sub-score into [0, 100]; non-finite values count as unmeasured."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return _clamp(value, 0.0, 100.0)


def _measured_below(score: float, limit: float) -> bool:
    # 0 means the channel was not measured
    return 0 < score < limit


def aggregate(
    checklist_score: int,
    tremor_score: float,
    pupil_score: float,
    ppg_score: float,
    weights: Optional[Dict[str, float]] = None,
) -> Tuple[float, SafetyLevel]:
    """Weighted average of the four channels and its safety level."""
    weights = weights or config.CHANNEL_WEIGHTS
    final = (
        normalize_channel(checklist_score) * weights["checklist"]
        + normalize_channel(tremor_score) * weights["tremor"]
        + normalize_channel(pupil_score) * weights["pupil"]
        + normalize_channel(ppg_score) * weights["ppg"]
    )
    final = _clamp(final, 0.0, 100.0)
    return final, classify(final)


def generate_recommendations(
    level: SafetyLevel, tremor_score: float, pupil_score: float, ppg_score: float
) -> List[str]:
    recommendations = list(LEVEL_RECOMMENDATIONS[level])
    limit = config.RECOMMENDATION_CAUTION_BELOW
    if _measured_below(tremor_score, limit):
        recommendations.append(TREMOR_CAUTION)
    if _measured_below(pupil_score, limit):
        recommendations.append(PUPIL_CAUTION)
    if _measured_below(ppg_score, limit):
        recommendations.append(PPG_CAUTION)
    return recommendations


def identify_risk_factors(tremor_score: float, pupil_score: float, ppg_score: float) -> List[RiskFactor]:
    channels = (
        ("tremor", tremor_score, "Hand tremor above normal range"),
        ("pupil", pupil_score, "Eye fatigue signs detected"),
        ("ppg", ppg_score, "Irregular heart signal"),
    )
    factors = []
    for channel, score, description in channels:
        if _measured_below(score, config.RECOMMENDATION_CAUTION_BELOW):
            severity = "HIGH" if score < config.RISK_HIGH_BELOW else "MEDIUM"
            factors.append(RiskFactor(channel=channel, description=description, severity=severity))
    return factors


class DecisionEngine:
    """Bundles aggregation, classification and advice for one completed check."""

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = dict(weights or config.CHANNEL_WEIGHTS)

    def evaluate(
        self, checklist_score: int, tremor_score: float, pupil_score: float, ppg_score: float
    ) -> SafetyDecision:
        final_score, level = aggregate(
            checklist_score, tremor_score, pupil_score, ppg_score, weights=self.weights
        )
        return SafetyDecision(
            final_score=final_score,
            level=level,
            recommendations=generate_recommendations(level, tremor_score, pupil_score, ppg_score),
            risk_factors=identify_risk_factors(tremor_score, pupil_score, ppg_score),
        )

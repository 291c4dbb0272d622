"""Admin reporting: level buckets, per-user statistics and the daily CSV report."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from safetycheck.decision_engine import SafetyLevel, classify
from safetycheck.results import SafetyCheckResult

ALL = "ALL"


@dataclass(frozen=True)
class UserStatistics:
    user_id: str
    user_name: str
    safe_count: int
    caution_count: int
    danger_count: int


def parse_level_filter(value: Optional[str]) -> Optional[SafetyLevel]:
    """``None``/"ALL" means no filter; anything else must name a level."""
    if value is None or value.upper() == ALL:
        return None
    return SafetyLevel(value.upper())


def bucket_results(results: Sequence[SafetyCheckResult], level: Optional[SafetyLevel]) -> List[SafetyCheckResult]:
    if level is None:
        return list(results)
    return [r for r in results if classify(r.final_safety_score) == level]


def level_counts(results: Sequence[SafetyCheckResult]) -> Dict[str, int]:
    counts = {level.value: 0 for level in SafetyLevel}
    for r in results:
        counts[classify(r.final_safety_score).value] += 1
    return counts


def user_statistics(results: Sequence[SafetyCheckResult]) -> List[UserStatistics]:
    """Per-user level counts, users with the most DANGER results first."""
    grouped: Dict[str, List[SafetyCheckResult]] = {}
    for r in results:
        grouped.setdefault(r.user_id, []).append(r)

    stats = []
    for user_id, user_results in grouped.items():
        counts = level_counts(user_results)
        stats.append(
            UserStatistics(
                user_id=user_id,
                user_name=user_results[0].name,
                safe_count=counts[SafetyLevel.SAFE.value],
                caution_count=counts[SafetyLevel.CAUTION.value],
                danger_count=counts[SafetyLevel.DANGER.value],
            )
        )
    # stable sort keeps first-seen order among equal danger counts
    return sorted(stats, key=lambda s: s.danger_count, reverse=True)


def daily_summary(results: Sequence[SafetyCheckResult]) -> pd.DataFrame:
    columns = [
        "emp_num",
        "name",
        "dept",
        "total_checks",
        "avg_final",
        "avg_checklist",
        "avg_tremor",
        "avg_pupil",
        "avg_ppg",
        "%safe",
        "%caution",
        "%danger",
    ]
    if not results:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        [
            {
                "emp_num": r.emp_num,
                "name": r.name,
                "dept": r.dept,
                "final": r.final_safety_score,
                "checklist": r.checklist_score,
                "tremor": r.tremor_score,
                "pupil": r.pupil_score,
                "ppg": r.ppg_score,
                "level": classify(r.final_safety_score).value,
            }
            for r in results
        ]
    )
    rows = []
    for emp_num, group in df.groupby("emp_num"):
        total = len(group)
        rows.append(
            {
                "emp_num": emp_num,
                "name": group["name"].iloc[0],
                "dept": group["dept"].iloc[0],
                "total_checks": total,
                "avg_final": round(group["final"].mean(), 2),
                "avg_checklist": round(group["checklist"].mean(), 2),
                "avg_tremor": round(group["tremor"].mean(), 2),
                "avg_pupil": round(group["pupil"].mean(), 2),
                "avg_ppg": round(group["ppg"].mean(), 2),
                "%safe": round((group["level"] == SafetyLevel.SAFE.value).sum() / total * 100, 2),
                "%caution": round((group["level"] == SafetyLevel.CAUTION.value).sum() / total * 100, 2),
                "%danger": round((group["level"] == SafetyLevel.DANGER.value).sum() / total * 100, 2),
            }
        )
    return pd.DataFrame(rows, columns=columns)


def write_daily_report(results: Sequence[SafetyCheckResult], date: dt.date, reports_dir: Path) -> Path:
    reports_dir = Path(reports_dir)
    reports_dir.mkdir(parents=True, exist_ok=True)
    report_path = reports_dir / f"daily_report_{date.isoformat()}.csv"
    daily_summary(results).to_csv(report_path, index=False)
    return report_path

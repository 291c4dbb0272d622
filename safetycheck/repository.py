"""
Persistence of safety check results.

Each employee has at most one stored result per day; saving again on the same
day replaces it. Rows are decoded through the strict record schema on the way
out.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, Iterable, List, Optional

import config
from safetycheck.db import db
from safetycheck.decision_engine import SafetyLevel, classify
from safetycheck.models import SafetyResult
from safetycheck.results import SafetyCheckResult, from_record

logger = logging.getLogger(__name__)


def _to_result(row: SafetyResult) -> SafetyCheckResult:
    return from_record(row.to_record())


def _apply(row: SafetyResult, result: SafetyCheckResult) -> None:
    row.user_id = result.user_id
    row.emp_num = result.emp_num
    row.name = result.name
    row.dept = result.dept
    row.checklist_score = result.checklist_score
    row.tremor_score = result.tremor_score
    row.pupil_score = result.pupil_score
    row.ppg_score = result.ppg_score
    row.final_safety_score = result.final_safety_score
    row.safety_level = result.safety_level.value
    row.date = result.date
    row.timestamp = result.timestamp
    row.recommendations = list(result.recommendations)


def _upsert(result: SafetyCheckResult) -> bool:
    row = SafetyResult.query.filter_by(emp_num=result.emp_num, date=result.date).first()
    created = row is None
    if created:
        row = SafetyResult()
        db.session.add(row)
    _apply(row, result)
    return created


def save_result(result: SafetyCheckResult) -> bool:
    """
    Store a result; returns True if it created the day's record, False if it
    replaced one. The result must pass the record schema, otherwise
    ``ValidationError`` is raised and nothing is written.
    """
    result = from_record(result.to_record())
    created = _upsert(result)
    db.session.commit()
    logger.info(
        "%s result %s/%s (%.1f %s)",
        "Stored" if created else "Replaced",
        result.date,
        result.emp_num,
        result.final_safety_score,
        result.safety_level.value,
    )
    return created


def import_records(records: Iterable[Dict]) -> int:
    """
    Decode exported records and store them. All records are validated before
    anything is written, so one bad record rejects the whole batch.
    """
    results = [from_record(record) for record in records]
    for result in results:
        _upsert(result)
    db.session.commit()
    logger.info("Imported %d safety results", len(results))
    return len(results)


def result_for(emp_num: str, date: str) -> Optional[SafetyCheckResult]:
    row = SafetyResult.query.filter_by(emp_num=emp_num, date=date).first()
    return _to_result(row) if row else None


def user_history(
    emp_num: str,
    level: Optional[SafetyLevel] = None,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> List[SafetyCheckResult]:
    """A worker's results, newest first, optionally filtered by level and inclusive date range."""
    query = SafetyResult.query.filter(SafetyResult.emp_num == emp_num)
    if start is not None:
        query = query.filter(SafetyResult.date >= start.isoformat())
    if end is not None:
        query = query.filter(SafetyResult.date <= end.isoformat())
    rows = query.order_by(SafetyResult.timestamp.desc()).all()

    results = [_to_result(r) for r in rows]
    if level is not None:
        results = [r for r in results if classify(r.final_safety_score) == level]
    return results


def results_by_date(date: dt.date, dept_prefix: Optional[str] = None) -> List[SafetyCheckResult]:
    rows = SafetyResult.query.filter_by(date=date.isoformat()).order_by(SafetyResult.timestamp.desc()).all()
    results = [_to_result(r) for r in rows]
    if dept_prefix:
        results = [r for r in results if r.dept.startswith(dept_prefix)]
    return results


def results_by_date_range(start: dt.date, end: dt.date) -> List[SafetyCheckResult]:
    rows = (
        SafetyResult.query.filter(SafetyResult.date >= start.isoformat(), SafetyResult.date <= end.isoformat())
        .order_by(SafetyResult.date.asc(), SafetyResult.timestamp.asc())
        .all()
    )
    return [_to_result(r) for r in rows]


def last_week_results(today: Optional[dt.date] = None) -> List[SafetyCheckResult]:
    today = today or dt.date.today()
    start = today - dt.timedelta(days=config.HISTORY_WEEK_DAYS - 1)
    return results_by_date_range(start, today)

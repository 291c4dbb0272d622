"""Worker-facing endpoints: checklist, measurements, session completion and history."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, List, Optional, Tuple

from flask import Blueprint, jsonify, request, session
from pydantic import BaseModel, Field, StrictInt, ValidationError

from safetycheck import repository
from safetycheck.auth import current_profile, ensure_worker
from safetycheck.checklist import ChecklistAnswer, completion_rate
from safetycheck.decision_engine import identify_risk_factors
from safetycheck.models import ChecklistQuestionConfig
from safetycheck.pupil import BlinkDetector, describe_fatigue
from safetycheck.reporting import parse_level_filter
from safetycheck.session import (
    MeasurementResult,
    MeasurementType,
    SafetyCheckSession,
    SessionError,
    SessionService,
)

logger = logging.getLogger(__name__)

worker_bp = Blueprint("worker", __name__)
service = SessionService()

SESSION_KEY = "safety_check"


class MeasurementPayload(BaseModel):
    type: MeasurementType
    score: Optional[float] = Field(default=None, ge=0, le=100)
    samples: Optional[List[Tuple[float, int]]] = None
    start_ms: Optional[int] = None


class ChecklistPayload(BaseModel):
    # question id -> 1-based option number, None for unanswered
    answers: Dict[str, Optional[StrictInt]]


def _require_worker():
    if not ensure_worker():
        return jsonify({"error": "unauthorized"}), 401
    return None


def _load_session() -> SafetyCheckSession:
    data = session.get(SESSION_KEY)
    if data is None:
        return service.start()
    return SafetyCheckSession.from_dict(data)


def _store_session(check: SafetyCheckSession) -> None:
    session[SESSION_KEY] = check.to_dict()


def _active_questions():
    rows = ChecklistQuestionConfig.query.order_by(ChecklistQuestionConfig.order.asc()).all()
    return [r.to_question() for r in rows]


def _parse_date(value: Optional[str]) -> Optional[dt.date]:
    return dt.date.fromisoformat(value) if value else None


@worker_bp.route("/checklist", methods=["GET"])
def checklist():
    err = _require_worker()
    if err:
        return err
    check = _load_session()
    questions = _active_questions()
    answers = [ChecklistAnswer(qid, opt) for qid, opt in check.answers.items()]
    return jsonify(
        {
            "questions": [
                {"id": q.id, "order": q.order, "question": q.question_text, "options": q.options}
                for q in questions
            ],
            "answers": check.answers,
            "completion_rate": completion_rate(questions, answers),
        }
    )


@worker_bp.route("/checklist", methods=["POST"])
def submit_checklist():
    err = _require_worker()
    if err:
        return err
    try:
        payload = ChecklistPayload.model_validate(request.get_json(force=True))
    except ValidationError as exc:
        return jsonify({"error": exc.errors(include_url=False, include_context=False)}), 400
    answers = [ChecklistAnswer(qid, opt) for qid, opt in payload.answers.items()]

    try:
        check = service.record_checklist(_load_session(), _active_questions(), answers)
    except SessionError as exc:
        return jsonify({"error": str(exc)}), 400
    _store_session(check)
    return jsonify({"session_id": check.session_id, "checklist_score": check.checklist_score})


@worker_bp.route("/checklist/reset", methods=["POST"])
def reset_checklist():
    err = _require_worker()
    if err:
        return err
    try:
        check = service.reset_checklist(_load_session())
    except SessionError as exc:
        return jsonify({"error": str(exc)}), 400
    _store_session(check)
    return jsonify({"message": "checklist reset"})


def _measurement_from(payload: MeasurementPayload) -> MeasurementResult:
    if payload.type == MeasurementType.PUPIL and payload.samples is not None:
        start_ms = payload.start_ms
        if start_ms is None:
            start_ms = payload.samples[0][1] if payload.samples else 0
        detector = BlinkDetector(start_ms=start_ms).feed(payload.samples)
        return MeasurementResult(payload.type, detector.score(), detector.summary())
    if payload.score is None:
        raise SessionError("score is required")
    return MeasurementResult(payload.type, payload.score)


@worker_bp.route("/measurement", methods=["POST"])
def submit_measurement():
    err = _require_worker()
    if err:
        return err
    try:
        payload = MeasurementPayload.model_validate(request.get_json(force=True))
        check = service.add_measurement(_load_session(), _measurement_from(payload))
    except ValidationError as exc:
        return jsonify({"error": exc.errors(include_url=False, include_context=False)}), 400
    except SessionError as exc:
        return jsonify({"error": str(exc)}), 400
    _store_session(check)

    result = check.measurements[payload.type]
    response = {"type": result.type.value, "score": result.score, "raw_data": result.raw_data}
    if result.type == MeasurementType.PUPIL:
        response["detail"] = describe_fatigue(result.score)
    return jsonify(response)


@worker_bp.route("/complete", methods=["POST"])
def complete():
    err = _require_worker()
    if err:
        return err
    profile = current_profile()
    if profile is None:
        return jsonify({"error": "employee not found"}), 404
    if SESSION_KEY not in session:
        return jsonify({"error": "no active safety check"}), 400

    try:
        result = service.complete(_load_session(), profile)
    except SessionError as exc:
        return jsonify({"error": str(exc)}), 400
    repository.save_result(result)
    session.pop(SESSION_KEY, None)

    factors = identify_risk_factors(result.tremor_score, result.pupil_score, result.ppg_score)
    return jsonify(
        {
            "result": result.to_record(),
            "risk_factors": [
                {"channel": f.channel, "description": f.description, "severity": f.severity} for f in factors
            ],
        }
    )


@worker_bp.route("/result", methods=["GET"])
def result():
    err = _require_worker()
    if err:
        return err
    try:
        date = _parse_date(request.args.get("date")) or dt.date.today()
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400
    stored = repository.result_for(session["emp_num"], date.isoformat())
    if stored is None:
        return jsonify({"error": "no result for date"}), 404
    return jsonify(stored.to_record())


@worker_bp.route("/history", methods=["GET"])
def history():
    err = _require_worker()
    if err:
        return err
    try:
        level = parse_level_filter(request.args.get("level"))
        start = _parse_date(request.args.get("start"))
        end = _parse_date(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "invalid level or date filter"}), 400
    results = repository.user_history(session["emp_num"], level=level, start=start, end=end)
    return jsonify([r.to_record() for r in results])

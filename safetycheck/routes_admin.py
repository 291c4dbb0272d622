"""Admin-facing endpoints: checklist authoring, result monitoring, statistics and reports."""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import List

from flask import Blueprint, current_app, jsonify, request
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from safetycheck import repository
from safetycheck.auth import ensure_admin
from safetycheck.checklist import ChecklistQuestion, ChecklistValidationError, validate_question
from safetycheck.db import db
from safetycheck.models import ChecklistQuestionConfig
from safetycheck.reporting import bucket_results, level_counts, parse_level_filter, user_statistics, write_daily_report

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__)


def _require_admin():
    if not ensure_admin():
        return jsonify({"error": "unauthorized"}), 401
    return None


def _date_arg() -> dt.date:
    date_str = request.args.get("date")
    return dt.datetime.strptime(date_str, "%Y-%m-%d").date() if date_str else dt.date.today()


class QuestionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    question: StrictStr = ""
    weight: StrictInt = 0
    options: List[StrictStr] = Field(default_factory=list)
    option_weights: List[StrictInt] = Field(default_factory=list, alias="optionWeights")


def _question_from_payload(payload, question_id: str, order: int) -> ChecklistQuestion:
    data = QuestionPayload.model_validate(payload)
    return ChecklistQuestion(
        id=question_id,
        order=order,
        question_text=data.question,
        weight=data.weight,
        options=list(data.options),
        option_weights=list(data.option_weights),
    )


def _save_question(row: ChecklistQuestionConfig, question: ChecklistQuestion) -> None:
    row.order = question.order
    row.question = question.question_text
    row.weight = question.weight
    row.options = list(question.options)
    row.option_weights = list(question.option_weights)


def _all_questions():
    return ChecklistQuestionConfig.query.order_by(ChecklistQuestionConfig.order.asc()).all()


@admin_bp.route("/checklist", methods=["GET"])
def list_checklist():
    err = _require_admin()
    if err:
        return err
    return jsonify([row.to_dict() for row in _all_questions()])


@admin_bp.route("/checklist", methods=["POST"])
def add_question():
    err = _require_admin()
    if err:
        return err
    rows = _all_questions()
    try:
        question = _question_from_payload(request.get_json(force=True), uuid.uuid4().hex, len(rows))
        validate_question(question, [r.to_question() for r in rows])
    except ValidationError as exc:
        return jsonify({"error": exc.errors(include_url=False, include_context=False)}), 400
    except ChecklistValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    row = ChecklistQuestionConfig(id=question.id)
    _save_question(row, question)
    db.session.add(row)
    db.session.commit()
    logger.info("Checklist question %s added", question.id)
    return jsonify(row.to_dict()), 201


@admin_bp.route("/checklist/<question_id>", methods=["PUT"])
def update_question(question_id):
    err = _require_admin()
    if err:
        return err
    row = db.session.get(ChecklistQuestionConfig, question_id)
    if not row:
        return jsonify({"error": "question not found"}), 404
    payload = {**row.to_dict(), **request.get_json(force=True)}
    others = [r.to_question() for r in _all_questions() if r.id != question_id]
    try:
        question = _question_from_payload(payload, question_id, row.order)
        validate_question(question, others)
    except ValidationError as exc:
        return jsonify({"error": exc.errors(include_url=False, include_context=False)}), 400
    except ChecklistValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    _save_question(row, question)
    db.session.commit()
    return jsonify(row.to_dict())


@admin_bp.route("/checklist/<question_id>", methods=["DELETE"])
def delete_question(question_id):
    err = _require_admin()
    if err:
        return err
    row = db.session.get(ChecklistQuestionConfig, question_id)
    if not row:
        return jsonify({"error": "question not found"}), 404
    db.session.delete(row)
    db.session.flush()
    for order, remaining in enumerate(_all_questions()):
        remaining.order = order
    db.session.commit()
    return jsonify({"message": "deleted"})


@admin_bp.route("/results", methods=["GET"])
def results():
    err = _require_admin()
    if err:
        return err
    try:
        date = _date_arg()
        level = parse_level_filter(request.args.get("filter"))
    except ValueError:
        return jsonify({"error": "invalid date or filter"}), 400
    day_results = repository.results_by_date(date, dept_prefix=request.args.get("dept"))
    return jsonify(
        {
            "date": date.isoformat(),
            "counts": level_counts(day_results),
            "results": [r.to_record() for r in bucket_results(day_results, level)],
        }
    )


@admin_bp.route("/statistics", methods=["GET"])
def statistics():
    err = _require_admin()
    if err:
        return err
    try:
        date = _date_arg()
        level = parse_level_filter(request.args.get("filter"))
    except ValueError:
        return jsonify({"error": "invalid date or filter"}), 400
    day_results = bucket_results(repository.results_by_date(date, dept_prefix=request.args.get("dept")), level)
    return jsonify(
        [
            {
                "userId": s.user_id,
                "userName": s.user_name,
                "safeCount": s.safe_count,
                "cautionCount": s.caution_count,
                "dangerCount": s.danger_count,
            }
            for s in user_statistics(day_results)
        ]
    )


@admin_bp.route("/report/daily", methods=["GET"])
def daily_report():
    err = _require_admin()
    if err:
        return err
    try:
        date = _date_arg()
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400
    day_results = repository.results_by_date(date)
    if not day_results:
        return jsonify({"error": "no data"}), 404
    path = write_daily_report(day_results, date, current_app.config["REPORTS_DIR"])
    return jsonify({"summary": str(path), "counts": level_counts(day_results)})


@admin_bp.route("/results/import", methods=["POST"])
def import_results():
    err = _require_admin()
    if err:
        return err
    records = request.get_json(force=True)
    if not isinstance(records, list):
        return jsonify({"error": "expected a list of records"}), 400
    try:
        imported = repository.import_records(records)
    except ValidationError as exc:
        db.session.rollback()
        return jsonify({"error": exc.errors(include_url=False, include_context=False)}), 400
    return jsonify({"imported": imported})

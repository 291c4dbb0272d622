import datetime as dt

import pytest
from pydantic import ValidationError

from safetycheck.checklist import ChecklistAnswer, ChecklistQuestion
from safetycheck.decision_engine import TREMOR_CAUTION, SafetyLevel, classify
from safetycheck.results import from_record
from safetycheck.session import (
    IncompleteChecklistError,
    MeasurementResult,
    MeasurementType,
    SafetyCheckSession,
    SessionError,
    SessionService,
    UserProfile,
)

QUESTIONS = [
    ChecklistQuestion(id="q1", question_text="Slept well?", weight=60, options=["Yes", "No"], option_weights=[100, 0]),
    ChecklistQuestion(id="q2", question_text="Feeling fit?", weight=40, options=["Yes", "No"], option_weights=[50, 50]),
]
PROFILE = UserProfile(user_id="emp-1", emp_num="E-001", name="Demo Worker", dept="Plant/Line A")
NOW = dt.datetime(2024, 5, 3, 8, 30)


def _checked_session(service):
    check = service.start("s-1")
    answers = [ChecklistAnswer("q1", 1), ChecklistAnswer("q2", 2)]
    return service.record_checklist(check, QUESTIONS, answers)


def test_record_checklist_scores_answers():
    check = _checked_session(SessionService())
    assert check.checklist_score == 80
    assert check.answers == {"q1": 1, "q2": 2}


def test_incomplete_checklist_is_rejected():
    service = SessionService()
    with pytest.raises(IncompleteChecklistError):
        service.record_checklist(service.start(), QUESTIONS, [ChecklistAnswer("q1", 1)])


def test_reset_checklist_clears_answers():
    service = SessionService()
    check = service.reset_checklist(_checked_session(service))
    assert check.answers == {}
    assert check.checklist_score == 0


def test_new_measurement_replaces_same_type():
    service = SessionService()
    check = service.add_measurement(service.start(), MeasurementResult(MeasurementType.TREMOR, 40.0))
    check = service.add_measurement(check, MeasurementResult(MeasurementType.TREMOR, 90.0))
    assert len(check.measurements) == 1
    assert check.score_for(MeasurementType.TREMOR) == 90.0
    assert check.score_for(MeasurementType.PPG) == 0.0


def test_complete_scores_session_with_unmeasured_channel_as_zero():
    service = SessionService()
    check = _checked_session(service)
    check = service.add_measurement(check, MeasurementResult(MeasurementType.TREMOR, 60.0))
    check = service.add_measurement(check, MeasurementResult(MeasurementType.PPG, 80.0))

    result = service.complete(check, PROFILE, now=NOW)

    assert result.pupil_score == 0.0
    assert result.final_safety_score == pytest.approx(60.0)
    assert result.safety_level == SafetyLevel.CAUTION
    assert result.recommendations == (
        "Stretch lightly before starting work.",
        "Take periodic breaks while working.",
        TREMOR_CAUTION,
    )
    assert result.date == "2024-05-03"
    assert result.timestamp == int(NOW.timestamp() * 1000)
    assert result.emp_num == "E-001"


def test_complete_stores_the_channel_values_it_scored():
    service = SessionService()
    check = _checked_session(service)
    check = service.add_measurement(check, MeasurementResult(MeasurementType.TREMOR, 150.0))
    check = service.add_measurement(check, MeasurementResult(MeasurementType.PUPIL, -5.0))
    check = service.add_measurement(check, MeasurementResult(MeasurementType.PPG, float("nan")))

    result = service.complete(check, PROFILE, now=NOW)

    assert (result.tremor_score, result.pupil_score, result.ppg_score) == (100.0, 0.0, 0.0)
    # 80 * 0.4 + 100 * 0.2
    assert result.final_safety_score == pytest.approx(52.0)
    assert from_record(result.to_record()) == result


def test_completed_session_cannot_be_reused():
    service = SessionService()
    done = service.mark_completed(_checked_session(service))
    with pytest.raises(SessionError):
        service.complete(done, PROFILE, now=NOW)
    with pytest.raises(SessionError):
        service.add_measurement(done, MeasurementResult(MeasurementType.PPG, 80.0))


def test_session_dict_round_trip():
    service = SessionService()
    check = service.add_measurement(
        _checked_session(service), MeasurementResult(MeasurementType.PUPIL, 72.5, {"blinkCount": 4})
    )
    assert SafetyCheckSession.from_dict(check.to_dict()) == check


def test_result_record_round_trip_keeps_level():
    service = SessionService()
    check = service.add_measurement(_checked_session(service), MeasurementResult(MeasurementType.PUPIL, 95.0))
    result = service.complete(check, PROFILE, now=NOW)

    record = result.to_record()
    assert record["safetyLevel"] == classify(record["finalSafetyScore"]).value
    assert from_record(record) == result


def _record(**changes):
    record = {
        "userId": "emp-1",
        "empNum": "E-001",
        "name": "Demo Worker",
        "dept": "Plant/Line A",
        "checklistScore": 80,
        "tremorScore": 60.0,
        "pupilScore": 0.0,
        "ppgScore": 80.0,
        "finalSafetyScore": 60.0,
        "safetyLevel": "CAUTION",
        "date": "2024-05-03",
        "timestamp": 1714725000000,
        "recommendations": ["Take periodic breaks while working."],
    }
    record.update(changes)
    return record


def test_from_record_accepts_valid_record():
    result = from_record(_record(tremorScore=60))
    assert result.tremor_score == 60.0
    assert result.safety_level == SafetyLevel.CAUTION


@pytest.mark.parametrize(
    "changes",
    [
        {"safetyLevel": "SAFE"},  # does not match the score
        {"safetyLevel": "UNKNOWN"},
        {"finalSafetyScore": 120.0, "safetyLevel": "SAFE"},
        {"tremorScore": "60"},
        {"checklistScore": 80.5},
        {"date": "2024-13-01"},
        {"date": "03/05/2024"},
        {"empNum": None},
        {"recommendations": "rest"},
    ],
)
def test_from_record_rejects_schema_violations(changes):
    with pytest.raises(ValidationError):
        from_record(_record(**changes))


def test_from_record_rejects_missing_field():
    record = _record()
    del record["finalSafetyScore"]
    with pytest.raises(ValidationError):
        from_record(record)

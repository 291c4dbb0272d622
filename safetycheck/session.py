"""
Safety check session state and the service that advances it.

A session is an immutable value: every service call returns a new session,
so the host decides where state lives between steps (the HTTP layer keeps it
in the signed Flask session cookie).
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence

from safetycheck.checklist import ChecklistAnswer, ChecklistQuestion, compute_checklist_score, is_complete
from safetycheck.decision_engine import DecisionEngine, normalize_channel
from safetycheck.results import SafetyCheckResult

logger = logging.getLogger(__name__)


class SessionError(ValueError):
    """Raised when a session step is not allowed in the current state."""


class IncompleteChecklistError(SessionError):
    """Raised when checklist answers leave a question unanswered."""


class MeasurementType(str, enum.Enum):
    TREMOR = "TREMOR"
    PUPIL = "PUPIL"
    PPG = "PPG"


@dataclass(frozen=True)
class MeasurementResult:
    type: MeasurementType
    score: float
    raw_data: Optional[Dict] = None


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    emp_num: str
    name: str
    dept: str


@dataclass(frozen=True)
class SafetyCheckSession:
    session_id: str
    answers: Dict[str, int] = field(default_factory=dict)
    checklist_score: int = 0
    measurements: Dict[MeasurementType, MeasurementResult] = field(default_factory=dict)
    is_completed: bool = False

    def score_for(self, mtype: MeasurementType) -> float:
        result = self.measurements.get(mtype)
        return result.score if result else 0.0

    def to_dict(self) -> Dict:
        return {
            "session_id": self.session_id,
            "answers": dict(self.answers),
            "checklist_score": self.checklist_score,
            "measurements": {
                m.type.value: {"score": m.score, "raw_data": m.raw_data} for m in self.measurements.values()
            },
            "is_completed": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "SafetyCheckSession":
        measurements = {}
        for key, value in (data.get("measurements") or {}).items():
            mtype = MeasurementType(key)
            measurements[mtype] = MeasurementResult(mtype, float(value["score"]), value.get("raw_data"))
        return cls(
            session_id=data["session_id"],
            answers={str(k): int(v) for k, v in (data.get("answers") or {}).items()},
            checklist_score=int(data.get("checklist_score", 0)),
            measurements=measurements,
            is_completed=bool(data.get("is_completed", False)),
        )


class SessionService:
    def __init__(self, engine: Optional[DecisionEngine] = None):
        self.engine = engine or DecisionEngine()

    def start(self, session_id: Optional[str] = None) -> SafetyCheckSession:
        return SafetyCheckSession(session_id=session_id or uuid.uuid4().hex)

    @staticmethod
    def _ensure_open(session: SafetyCheckSession) -> None:
        if session.is_completed:
            raise SessionError("Session already completed")

    def record_checklist(
        self,
        session: SafetyCheckSession,
        questions: Sequence[ChecklistQuestion],
        answers: Sequence[ChecklistAnswer],
    ) -> SafetyCheckSession:
        self._ensure_open(session)
        if not is_complete(questions, answers):
            raise IncompleteChecklistError("Every checklist question needs an answer")
        score = compute_checklist_score(questions, answers)
        selected = {a.question_id: a.selected_option for a in answers if a.selected_option is not None}
        return replace(session, answers=selected, checklist_score=score)

    def reset_checklist(self, session: SafetyCheckSession) -> SafetyCheckSession:
        self._ensure_open(session)
        return replace(session, answers={}, checklist_score=0)

    def add_measurement(self, session: SafetyCheckSession, result: MeasurementResult) -> SafetyCheckSession:
        self._ensure_open(session)
        measurements = dict(session.measurements)
        measurements[result.type] = result
        logger.info("Session %s: %s measured %.1f", session.session_id, result.type.value, result.score)
        return replace(session, measurements=measurements)

    def complete(
        self,
        session: SafetyCheckSession,
        profile: UserProfile,
        now: Optional[dt.datetime] = None,
    ) -> SafetyCheckResult:
        """Score the session into a result snapshot; unmeasured or non-finite channels count as 0."""
        self._ensure_open(session)
        now = now or dt.datetime.now()
        tremor = normalize_channel(session.score_for(MeasurementType.TREMOR))
        pupil = normalize_channel(session.score_for(MeasurementType.PUPIL))
        ppg = normalize_channel(session.score_for(MeasurementType.PPG))

        decision = self.engine.evaluate(session.checklist_score, tremor, pupil, ppg)
        result = SafetyCheckResult(
            user_id=profile.user_id,
            emp_num=profile.emp_num,
            name=profile.name,
            dept=profile.dept,
            checklist_score=session.checklist_score,
            tremor_score=tremor,
            pupil_score=pupil,
            ppg_score=ppg,
            final_safety_score=decision.final_score,
            safety_level=decision.level,
            date=now.date().isoformat(),
            timestamp=int(now.timestamp() * 1000),
            recommendations=tuple(decision.recommendations),
        )
        logger.info(
            "Session %s completed for %s: %.1f %s",
            session.session_id,
            profile.emp_num,
            result.final_safety_score,
            result.safety_level.value,
        )
        return result

    @staticmethod
    def mark_completed(session: SafetyCheckSession) -> SafetyCheckSession:
        return replace(session, is_completed=True)

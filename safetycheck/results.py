"""
Safety check result snapshot and its stored record schema.

``to_record`` produces the camelCase record that history and admin views
consume; ``from_record`` is the only way a stored record becomes a
``SafetyCheckResult`` again and rejects anything that does not fit the schema.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator, model_validator

from safetycheck.decision_engine import SafetyLevel, classify


@dataclass(frozen=True)
class SafetyCheckResult:
    user_id: str
    emp_num: str
    name: str
    dept: str
    checklist_score: int
    tremor_score: float
    pupil_score: float
    ppg_score: float
    final_safety_score: float
    safety_level: SafetyLevel
    date: str  # YYYY-MM-DD
    timestamp: int  # epoch ms
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    def to_record(self) -> Dict:
        return {
            "userId": self.user_id,
            "empNum": self.emp_num,
            "name": self.name,
            "dept": self.dept,
            "checklistScore": self.checklist_score,
            "tremorScore": self.tremor_score,
            "pupilScore": self.pupil_score,
            "ppgScore": self.ppg_score,
            "finalSafetyScore": self.final_safety_score,
            "safetyLevel": self.safety_level.value,
            "date": self.date,
            "timestamp": self.timestamp,
            "recommendations": list(self.recommendations),
        }


Score = StrictFloat


class SafetyCheckRecord(BaseModel):
    """Schema of a stored safety check record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    user_id: StrictStr = Field(alias="userId")
    emp_num: StrictStr = Field(alias="empNum", min_length=1)
    name: StrictStr
    dept: StrictStr
    checklist_score: StrictInt = Field(alias="checklistScore", ge=0, le=100)
    tremor_score: Score = Field(alias="tremorScore", ge=0, le=100)
    pupil_score: Score = Field(alias="pupilScore", ge=0, le=100)
    ppg_score: Score = Field(alias="ppgScore", ge=0, le=100)
    final_safety_score: Score = Field(alias="finalSafetyScore", ge=0, le=100)
    safety_level: SafetyLevel = Field(alias="safetyLevel")
    date: StrictStr = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    timestamp: StrictInt = Field(ge=0)
    recommendations: List[StrictStr] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def _calendar_date(cls, value: str) -> str:
        dt.date.fromisoformat(value)
        return value

    @model_validator(mode="after")
    def _level_matches_score(self):
        expected = classify(self.final_safety_score)
        if expected != self.safety_level:
            raise ValueError(
                f"safetyLevel {self.safety_level.value} does not match finalSafetyScore "
                f"{self.final_safety_score} ({expected.value})"
            )
        return self

    def to_result(self) -> SafetyCheckResult:
        return SafetyCheckResult(
            user_id=self.user_id,
            emp_num=self.emp_num,
            name=self.name,
            dept=self.dept,
            checklist_score=self.checklist_score,
            tremor_score=float(self.tremor_score),
            pupil_score=float(self.pupil_score),
            ppg_score=float(self.ppg_score),
            final_safety_score=float(self.final_safety_score),
            safety_level=self.safety_level,
            date=self.date,
            timestamp=self.timestamp,
            recommendations=tuple(self.recommendations),
        )


def from_record(record: Dict) -> SafetyCheckResult:
    """Decode a stored record; raises ``pydantic.ValidationError`` on any schema violation."""
    return SafetyCheckRecord.model_validate(record).to_result()

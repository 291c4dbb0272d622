"""SQLAlchemy models for employees, admins, checklist questions and safety results."""

from __future__ import annotations

from safetycheck.checklist import ChecklistQuestion
from safetycheck.db import db


class Employee(db.Model):
    __tablename__ = "employees"
    id = db.Column(db.Integer, primary_key=True)
    emp_num = db.Column(db.String, unique=True, nullable=False)
    name = db.Column(db.String, nullable=False)
    dept = db.Column(db.String, nullable=False, default="")  # "/"-joined department path


class AdminUser(db.Model):
    __tablename__ = "admin_users"
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String, unique=True, nullable=False)
    password_hash = db.Column(db.String, nullable=False)


class ChecklistQuestionConfig(db.Model):
    __tablename__ = "checklist_questions"
    id = db.Column(db.String, primary_key=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    question = db.Column(db.String, nullable=False)
    weight = db.Column(db.Integer, nullable=False, default=0)
    options = db.Column(db.JSON, nullable=False, default=list)
    option_weights = db.Column(db.JSON, nullable=False, default=list)

    def to_question(self) -> ChecklistQuestion:
        return ChecklistQuestion(
            id=self.id,
            order=self.order,
            question_text=self.question,
            weight=self.weight,
            options=list(self.options or []),
            option_weights=[int(w) for w in (self.option_weights or [])],
        )

    def to_dict(self):
        return {
            "id": self.id,
            "order": self.order,
            "question": self.question,
            "weight": self.weight,
            "options": list(self.options or []),
            "optionWeights": list(self.option_weights or []),
        }


class SafetyResult(db.Model):
    __tablename__ = "safety_results"
    __table_args__ = (db.UniqueConstraint("emp_num", "date", name="uq_result_emp_date"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String, nullable=False)
    emp_num = db.Column(db.String, nullable=False, index=True)
    name = db.Column(db.String, nullable=False)
    dept = db.Column(db.String, nullable=False, default="")
    checklist_score = db.Column(db.Integer, nullable=False)
    tremor_score = db.Column(db.Float, nullable=False)
    pupil_score = db.Column(db.Float, nullable=False)
    ppg_score = db.Column(db.Float, nullable=False)
    final_safety_score = db.Column(db.Float, nullable=False)
    safety_level = db.Column(db.String, nullable=False)  # SAFE | CAUTION | DANGER
    date = db.Column(db.String, nullable=False, index=True)  # YYYY-MM-DD
    timestamp = db.Column(db.BigInteger, nullable=False)  # epoch ms
    recommendations = db.Column(db.JSON, nullable=False, default=list)

    def to_record(self):
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
            "safetyLevel": self.safety_level,
            "date": self.date,
            "timestamp": self.timestamp,
            "recommendations": list(self.recommendations or []),
        }

"""Database setup and initialization helpers."""

from __future__ import annotations

import logging

from flask import current_app
from flask_bcrypt import Bcrypt
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
bcrypt = Bcrypt()

logger = logging.getLogger(__name__)

DEFAULT_CHECKLIST = [
    {
        "id": "sleep",
        "question": "How well did you sleep last night?",
        "weight": 30,
        "options": ["Well", "Average", "Poorly"],
        "option_weights": [100, 0, 0],
    },
    {
        "id": "condition",
        "question": "How is your physical condition today?",
        "weight": 30,
        "options": ["Good", "Fair", "Unwell"],
        "option_weights": [100, 0, 0],
    },
    {
        "id": "medication",
        "question": "Have you taken medication that causes drowsiness?",
        "weight": 20,
        "options": ["No", "Yes"],
        "option_weights": [100, 0],
    },
    {
        "id": "equipment",
        "question": "Is your protective equipment complete?",
        "weight": 20,
        "options": ["Complete", "Partly", "Missing"],
        "option_weights": [100, 0, 0],
    },
]


def init_db():
    """Create tables and seed an admin, a demo employee and the default checklist if missing."""
    db.create_all()
    from safetycheck.models import AdminUser, ChecklistQuestionConfig, Employee  # noqa: WPS433

    if not AdminUser.query.filter_by(username="admin").first():
        password = current_app.config.get("ADMIN_DEFAULT_PASSWORD", "admin123")
        admin = AdminUser(username="admin", password_hash=bcrypt.generate_password_hash(password).decode())
        db.session.add(admin)

    if not Employee.query.filter_by(emp_num="E-001").first():
        db.session.add(Employee(emp_num="E-001", name="Demo Worker", dept="Plant/Line A"))

    if ChecklistQuestionConfig.query.count() == 0:
        for order, item in enumerate(DEFAULT_CHECKLIST):
            db.session.add(ChecklistQuestionConfig(order=order, **item))
        logger.info("Seeded %d default checklist questions", len(DEFAULT_CHECKLIST))

    db.session.commit()

"""
Global configuration for the worker safety-check service.
Scoring thresholds and channel weights live here so the engine and the
reporting views read the same values.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DB_PATH = os.path.join(BASE_DIR, "safety.db")
SQLALCHEMY_DATABASE_URI = os.environ.get("SAFETY_DB_URI", f"sqlite:///{DB_PATH}")
SQLALCHEMY_TRACK_MODIFICATIONS = False
SECRET_KEY = os.environ.get("SAFETY_APP_SECRET", "dev-secret-change-me")
SESSION_COOKIE_NAME = "safety_session"
ADMIN_DEFAULT_PASSWORD = os.environ.get("SAFETY_ADMIN_PASSWORD", "admin123")
REPORTS_DIR = os.environ.get("SAFETY_REPORTS_DIR", "reports")

# Safety level cutoffs on the final score (inclusive lower bounds)
SAFE_THRESHOLD = 70
CAUTION_THRESHOLD = 50

# Final score channel weights, must sum to 1.0
CHANNEL_WEIGHTS = {
    "checklist": 0.40,
    "tremor": 0.20,
    "pupil": 0.20,
    "ppg": 0.20,
}

# A measured sub-score below this triggers its caution recommendation
RECOMMENDATION_CAUTION_BELOW = 70

# Risk factors below this are reported as HIGH severity
RISK_HIGH_BELOW = 50

# Pupil measurement window in milliseconds
PUPIL_MEASUREMENT_MS = 15000

# Eye-open ratio under which the eye counts as closed
EYE_CLOSED_THRESHOLD = 0.2

# Eye-open probability assumed when the detector reports none for an eye
EYE_OPEN_DEFAULT = 0.5

# Authoring limits for checklist questions
CHECKLIST_MIN_OPTIONS = 2
CHECKLIST_MAX_OPTIONS = 5
CHECKLIST_WEIGHT_TOTAL = 100

# Days covered by the "last week" admin view, today included
HISTORY_WEEK_DAYS = 7

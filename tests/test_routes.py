import datetime as dt

import pytest

from safetycheck import create_app
from safetycheck.db import db


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "TESTING": True,
            "BCRYPT_LOG_ROUNDS": 4,
            "REPORTS_DIR": str(tmp_path / "reports"),
        }
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def worker(app):
    client = app.test_client()
    r = client.post("/login/worker", json={"name": "Demo Worker", "emp_num": "E-001"})
    assert r.status_code == 200
    return client


@pytest.fixture
def admin(app):
    client = app.test_client()
    r = client.post("/login/admin", json={"username": "admin", "password": "admin123"})
    assert r.status_code == 200
    return client


def _pupil_samples():
    # open eyes sampled every 100 ms with a short blink every second
    samples = []
    for t in range(0, 6001, 100):
        closed = t in (1000, 2000, 3000, 4000, 5000)
        samples.append([0.1 if closed else 0.9, t])
    return samples


def _answer_all(client, option=1):
    questions = client.get("/worker/checklist").get_json()["questions"]
    return client.post("/worker/checklist", json={"answers": {q["id"]: option for q in questions}})


def test_healthz(app):
    assert app.test_client().get("/healthz").get_json() == {"status": "ok"}


def test_login_rejects_wrong_name(app):
    client = app.test_client()
    assert client.post("/login/worker", json={"name": "Someone", "emp_num": "E-001"}).status_code == 401
    assert client.post("/login/worker", json={"name": "Someone", "emp_num": "X-999"}).status_code == 404
    assert client.post("/login/admin", json={"username": "admin", "password": "nope"}).status_code == 401


def test_worker_endpoints_require_login(app):
    client = app.test_client()
    assert client.get("/worker/checklist").status_code == 401
    assert client.post("/worker/complete").status_code == 401
    assert client.get("/admin/results").status_code == 401


def test_full_safety_check(worker):
    checklist = worker.get("/worker/checklist").get_json()
    assert len(checklist["questions"]) == 4
    assert checklist["completion_rate"] == 0

    r = _answer_all(worker)
    assert r.get_json()["checklist_score"] == 100

    r = worker.post("/worker/measurement", json={"type": "PUPIL", "samples": _pupil_samples(), "start_ms": 0})
    pupil = r.get_json()
    assert pupil["raw_data"]["blinkCount"] == 5
    assert pupil["score"] > 90
    assert pupil["detail"] == "Eye condition is very good"

    assert worker.post("/worker/measurement", json={"type": "TREMOR", "score": 90}).status_code == 200
    assert worker.post("/worker/measurement", json={"type": "PPG", "score": 85}).status_code == 200

    r = worker.post("/worker/complete")
    assert r.status_code == 200
    record = r.get_json()["result"]
    assert record["safetyLevel"] == "SAFE"
    assert record["checklistScore"] == 100
    assert record["recommendations"] == ["Condition is safe. Proceed with work."]
    assert r.get_json()["risk_factors"] == []

    today = worker.get("/worker/result").get_json()
    assert today == record
    history = worker.get("/worker/history?level=SAFE").get_json()
    assert [h["date"] for h in history] == [dt.date.today().isoformat()]
    assert worker.get("/worker/history?level=DANGER").get_json() == []


def test_unmeasured_channels_lower_the_result(worker):
    _answer_all(worker, option=2)
    r = worker.post("/worker/complete")
    record = r.get_json()["result"]
    assert record["finalSafetyScore"] == 0.0
    assert record["safetyLevel"] == "DANGER"
    assert record["tremorScore"] == 0.0


def test_checklist_must_be_complete(worker):
    questions = worker.get("/worker/checklist").get_json()["questions"]
    r = worker.post("/worker/checklist", json={"answers": {questions[0]["id"]: 1}})
    assert r.status_code == 400


@pytest.mark.parametrize("option", [1.7, 1.0, "1", True])
def test_checklist_option_numbers_must_be_integers(worker, option):
    questions = worker.get("/worker/checklist").get_json()["questions"]
    answers = {q["id"]: 1 for q in questions}
    answers[questions[0]["id"]] = option
    assert worker.post("/worker/checklist", json={"answers": answers}).status_code == 400


def test_measurement_validation(worker):
    assert worker.post("/worker/measurement", json={"type": "TREMOR", "score": 150}).status_code == 400
    assert worker.post("/worker/measurement", json={"type": "EEG", "score": 50}).status_code == 400
    assert worker.post("/worker/measurement", json={"type": "PPG"}).status_code == 400


def test_complete_without_session(worker):
    assert worker.post("/worker/complete").status_code == 400


def test_result_for_missing_date(worker):
    assert worker.get("/worker/result?date=2000-01-01").status_code == 404
    assert worker.get("/worker/result?date=yesterday").status_code == 400


def test_admin_checklist_authoring_rules(admin):
    questions = admin.get("/admin/checklist").get_json()
    assert sum(q["weight"] for q in questions) == 100

    over = {"question": "Ate breakfast?", "weight": 10, "options": ["Yes", "No"], "optionWeights": [100, 0]}
    r = admin.post("/admin/checklist", json=over)
    assert r.status_code == 400
    assert "Total question weight" in r.get_json()["error"]

    bad_options = {"question": "Ate breakfast?", "weight": 0, "options": ["Yes", "No"], "optionWeights": [80, 40]}
    assert admin.post("/admin/checklist", json=bad_options).status_code == 400

    ok = {"question": "Ate breakfast?", "weight": 0, "options": ["Yes", "No"], "optionWeights": [100, 0]}
    r = admin.post("/admin/checklist", json=ok)
    assert r.status_code == 201
    new_id = r.get_json()["id"]
    assert r.get_json()["order"] == 4

    first = questions[0]["id"]
    assert admin.put(f"/admin/checklist/{first}", json={"weight": 40}).status_code == 400
    assert admin.put(f"/admin/checklist/{first}", json={"weight": 20}).status_code == 200

    assert admin.delete(f"/admin/checklist/{first}").status_code == 200
    remaining = admin.get("/admin/checklist").get_json()
    assert [q["order"] for q in remaining] == [0, 1, 2, 3]
    assert remaining[-1]["id"] == new_id
    assert admin.delete("/admin/checklist/missing").status_code == 404


@pytest.mark.parametrize(
    "changes",
    [{"weight": 12.7}, {"weight": "10"}, {"optionWeights": [100, 0.5]}, {"options": ["Yes", 2]}],
)
def test_admin_question_fields_are_not_coerced(admin, changes):
    question = {"question": "Ate breakfast?", "weight": 0, "options": ["Yes", "No"], "optionWeights": [100, 0]}
    question.update(changes)
    assert admin.post("/admin/checklist", json=question).status_code == 400

    first = admin.get("/admin/checklist").get_json()[0]
    assert admin.put(f"/admin/checklist/{first['id']}", json=changes).status_code == 400
    assert admin.get("/admin/checklist").get_json()[0] == first


def test_admin_results_statistics_and_report(app, worker, admin):
    _answer_all(worker, option=2)
    worker.post("/worker/complete")

    today = dt.date.today().isoformat()
    body = admin.get(f"/admin/results?date={today}").get_json()
    assert body["counts"] == {"SAFE": 0, "CAUTION": 0, "DANGER": 1}
    assert len(body["results"]) == 1
    assert admin.get(f"/admin/results?date={today}&filter=SAFE").get_json()["results"] == []
    assert admin.get(f"/admin/results?date={today}&dept=Office").get_json()["results"] == []
    assert admin.get("/admin/results?filter=BAD").status_code == 400

    stats = admin.get(f"/admin/statistics?date={today}").get_json()
    assert stats == [
        {"userId": stats[0]["userId"], "userName": "Demo Worker", "safeCount": 0, "cautionCount": 0, "dangerCount": 1}
    ]

    report = admin.get(f"/admin/report/daily?date={today}").get_json()
    assert report["summary"].endswith(f"daily_report_{today}.csv")
    assert admin.get("/admin/report/daily?date=2000-01-01").status_code == 404


def test_admin_import_rejects_bad_records(admin):
    record = {
        "userId": "legacy-1",
        "empNum": "L-001",
        "name": "Legacy Worker",
        "dept": "Plant",
        "checklistScore": 90,
        "tremorScore": 80.0,
        "pupilScore": 75.5,
        "ppgScore": 0.0,
        "finalSafetyScore": 67.1,
        "safetyLevel": "CAUTION",
        "date": "2024-04-01",
        "timestamp": 1711929600000,
        "recommendations": [],
    }
    assert admin.post("/admin/results/import", json=[record]).get_json() == {"imported": 1}
    stored = admin.get("/admin/results?date=2024-04-01").get_json()["results"]
    assert stored == [record]

    broken = dict(record, safetyLevel="SAFE")
    assert admin.post("/admin/results/import", json=[broken]).status_code == 400
    assert admin.post("/admin/results/import", json={"not": "a list"}).status_code == 400

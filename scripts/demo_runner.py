"""
Demo runner that replays a full safety check into the backend via HTTP.
Assumes server running on localhost:5000 with the seeded demo employee.
"""
from __future__ import annotations

import requests

from sensor_simulator import BlinkStreamSimulator

SERVER = "http://localhost:5000"


def login_worker(http: requests.Session):
    r = http.post(f"{SERVER}/login/worker", json={"name": "Demo Worker", "emp_num": "E-001"})
    r.raise_for_status()


def run_session(http: requests.Session, profile: str):
    questions = http.get(f"{SERVER}/worker/checklist").json()["questions"]
    answers = {q["id"]: 1 if profile == "alert" else len(q["options"]) for q in questions}
    http.post(f"{SERVER}/worker/checklist", json={"answers": answers}).raise_for_status()

    simulator = BlinkStreamSimulator(profile=profile)
    pupil = http.post(
        f"{SERVER}/worker/measurement",
        json={"type": "PUPIL", "samples": simulator.stream(), "start_ms": 0},
    )
    pupil.raise_for_status()
    for mtype in ("TREMOR", "PPG"):
        http.post(
            f"{SERVER}/worker/measurement", json={"type": mtype, "score": simulator.channel_score()}
        ).raise_for_status()

    done = http.post(f"{SERVER}/worker/complete")
    done.raise_for_status()
    record = done.json()["result"]
    print(f"{profile}: final {record['finalSafetyScore']:.1f} {record['safetyLevel']}")


def main():
    http = requests.Session()
    login_worker(http)
    for profile in ("alert", "tired"):
        run_session(http, profile)


if __name__ == "__main__":
    main()

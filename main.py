"""
CLI entry-point that runs simulated safety checks without the web API.
"""

from __future__ import annotations

import argparse
import random

from safetycheck.db import DEFAULT_CHECKLIST
from safetycheck.checklist import ChecklistAnswer, ChecklistQuestion
from safetycheck.pupil import BlinkDetector, describe_fatigue
from safetycheck.session import MeasurementResult, MeasurementType, SessionService, UserProfile
from sensor_simulator import BlinkStreamSimulator


def default_questions():
    return [
        ChecklistQuestion(
            id=item["id"],
            order=order,
            question_text=item["question"],
            weight=item["weight"],
            options=item["options"],
            option_weights=item["option_weights"],
        )
        for order, item in enumerate(DEFAULT_CHECKLIST)
    ]


def run_cli(profile: str = "alert", iterations: int = 3, seed=None) -> None:
    rng = random.Random(seed)
    simulator = BlinkStreamSimulator(profile=profile, seed=seed)
    service = SessionService()
    questions = default_questions()
    worker = UserProfile(user_id="cli", emp_num="CLI-001", name="CLI Worker", dept="Simulation")

    for _ in range(iterations):
        check = service.start()
        answers = [ChecklistAnswer(q.id, rng.randint(1, len(q.options))) for q in questions]
        check = service.record_checklist(check, questions, answers)

        detector = BlinkDetector(start_ms=0).feed(simulator.stream())
        check = service.add_measurement(
            check, MeasurementResult(MeasurementType.PUPIL, detector.score(), detector.summary())
        )
        check = service.add_measurement(check, MeasurementResult(MeasurementType.TREMOR, simulator.channel_score()))
        check = service.add_measurement(check, MeasurementResult(MeasurementType.PPG, simulator.channel_score()))

        result = service.complete(check, worker)
        print(
            f"Checklist {result.checklist_score} | Tremor {result.tremor_score:.0f} | "
            f"Pupil {result.pupil_score:.0f} ({detector.blink_count} blinks, {describe_fatigue(result.pupil_score)}) | "
            f"PPG {result.ppg_score:.0f} | Final {result.final_safety_score:.1f} {result.safety_level.value}"
        )
        for line in result.recommendations:
            print(f"  - {line}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run simulated safety checks")
    parser.add_argument("--profile", choices=["alert", "tired"], default="alert")
    parser.add_argument("--iterations", type=int, default=3)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()
    run_cli(args.profile, args.iterations, args.seed)

"""
Checklist scoring and authoring-time validation.

Scoring trusts its input: weights that break the authoring rules only affect
the result through the final clamp. Validation is a separate layer used when
an admin creates or edits a question.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import config


class ChecklistValidationError(ValueError):
    """Raised when an authored question breaks the checklist rules."""


@dataclass(frozen=True)
class ChecklistQuestion:
    id: str
    question_text: str
    weight: int
    options: List[str] = field(default_factory=list)
    option_weights: List[int] = field(default_factory=list)
    order: int = 0


@dataclass(frozen=True)
class ChecklistAnswer:
    question_id: str
    selected_option: Optional[int] = None  # 1-based


def _clamp(val, low, high):
    return max(low, min(high, val))


def _answer_map(answers: Iterable[ChecklistAnswer]) -> Dict[str, Optional[int]]:
    return {a.question_id: a.selected_option for a in answers}


def _contribution(question: ChecklistQuestion, selected: Optional[int]) -> float:
    if selected is None or selected < 1 or selected > len(question.option_weights):
        return 0.0
    return question.weight * (question.option_weights[selected - 1] / 100.0)


def compute_checklist_score(
    questions: Sequence[ChecklistQuestion], answers: Iterable[ChecklistAnswer]
) -> int:
    """
    Sum each answered question's weight scaled by its selected option weight.
    No renormalisation by question count; the total is clamped to [0, 100]
    and rounded half up.
    """
    selected = _answer_map(answers)
    total = sum(_contribution(q, selected.get(q.id)) for q in questions)
    return int(math.floor(_clamp(total, 0.0, 100.0) + 0.5))


def is_complete(questions: Sequence[ChecklistQuestion], answers: Iterable[ChecklistAnswer]) -> bool:
    selected = _answer_map(answers)
    return all(selected.get(q.id) is not None for q in questions)


def completion_rate(questions: Sequence[ChecklistQuestion], answers: Iterable[ChecklistAnswer]) -> int:
    if not questions:
        return 0
    selected = _answer_map(answers)
    completed = sum(1 for q in questions if selected.get(q.id) is not None)
    return completed * 100 // len(questions)


def validate_question(question: ChecklistQuestion, others: Sequence[ChecklistQuestion] = ()) -> None:
    """Check a question against the authoring rules; ``others`` is the rest of the active set."""
    if not question.question_text.strip():
        raise ChecklistValidationError("Question text is required")
    if not 0 <= question.weight <= 100:
        raise ChecklistValidationError("Question weight must be between 0 and 100")

    total = question.weight + sum(q.weight for q in others if q.id != question.id)
    if total > config.CHECKLIST_WEIGHT_TOTAL:
        raise ChecklistValidationError(
            f"Total question weight cannot exceed {config.CHECKLIST_WEIGHT_TOTAL} (would be {total})"
        )

    n_options = len(question.options)
    if not config.CHECKLIST_MIN_OPTIONS <= n_options <= config.CHECKLIST_MAX_OPTIONS:
        raise ChecklistValidationError(
            f"A question needs {config.CHECKLIST_MIN_OPTIONS}-{config.CHECKLIST_MAX_OPTIONS} options"
        )
    if len(question.option_weights) != n_options:
        raise ChecklistValidationError("Each option needs exactly one weight")
    if any(not 0 <= w <= 100 for w in question.option_weights):
        raise ChecklistValidationError("Option weights must be between 0 and 100")

    option_total = sum(question.option_weights)
    if option_total > 100:
        raise ChecklistValidationError(f"Option weights cannot sum over 100 (current: {option_total})")

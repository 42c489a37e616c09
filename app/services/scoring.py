"""
Assessment and training quiz scoring.

Scores are whole percentages. A score of PASSING_SCORE or more passes and,
for a training module quiz, moves the candidate forward in the pipeline.
"""

from typing import Any, Iterable, Mapping, Optional

from app.services.pipeline import (
    INTERVIEW_STEP,
    PROJECT_STEP,
    TRAINING_STEP,
    round_half_up,
)

PASSING_SCORE = 70

MODULE_NEXT_STEPS = {
    "product": TRAINING_STEP,
    "sales": INTERVIEW_STEP,
    "customer-service": PROJECT_STEP,
}


def _question_key(question: Any) -> Any:
    if isinstance(question, Mapping):
        return question.get("id")
    return getattr(question, "id", None)


def _correct_index(question: Any) -> Any:
    if isinstance(question, Mapping):
        return question.get("correct_answer")
    return getattr(question, "correct_answer", None)


def score_quiz(questions: Iterable[Any], answers: Optional[Mapping[Any, Any]]) -> int:
    """
    Score answers against a quiz.

    Args:
        questions: Ordered questions; ORM rows or dicts with `id` and
            `correct_answer` (the index of the right option)
        answers: Mapping of question id to selected option index. Keys are
            matched as strings because JSON payloads stringify them.

    Returns:
        Percentage of correct answers (0-100). An empty quiz scores 0.
    """
    questions = list(questions or [])
    if not questions:
        return 0

    selected = {str(key): value for key, value in (answers or {}).items()}
    matches = 0
    for question in questions:
        answer = selected.get(str(_question_key(question)))
        correct = _correct_index(question)
        if answer is not None and correct is not None and answer == correct:
            matches += 1

    return round_half_up(100 * matches / len(questions))


def is_passing(score: Optional[float]) -> bool:
    """True when a score meets the fixed passing threshold."""
    return score is not None and score >= PASSING_SCORE


def next_step_for_module(module: Optional[str]) -> int:
    """Pipeline step a candidate reaches by passing the given module's quiz."""
    key = (module or "").strip().lower()
    return MODULE_NEXT_STEPS.get(key, TRAINING_STEP)


def step_after_quiz(current_step: Optional[int], module: Optional[str], score: Optional[float]) -> int:
    """
    Step to store after a module quiz.

    Passing advances to the module's next step but never below the current
    step; failing leaves it unchanged.
    """
    current = current_step or 0
    if not is_passing(score):
        return current
    return max(current, next_step_for_module(module))

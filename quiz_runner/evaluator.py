"""
Answer evaluation for the quiz runner.
Compares submitted answers against canonical answers and computes scores.
"""
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Sequence

from .models import Answer, Question

logger = logging.getLogger(__name__)

# Submissions accepted as a set of keys for multi-select questions
_KEY_COLLECTIONS = (set, frozenset, list, tuple)


class PerformanceBand(Enum):
    """Result bands shown on the results screen."""
    EXCELLENT = "Excellent! 🎉"
    GOOD = "Good job! 👍"
    AVERAGE = "Not bad! Keep practicing 💪"
    NEEDS_IMPROVEMENT = "You can do better! Try again 📚"

    @property
    def message(self) -> str:
        return self.value


def is_correct(question: Question, submitted: Any) -> bool:
    """
    Check a submitted answer against the question's canonical answer.

    Multi-select questions are all-or-nothing: the submitted keys must equal
    the canonical keys as a set. Anything that is not a collection of keys
    is simply wrong.

    Args:
        question: Question being answered
        submitted: Submitted key, collection of keys, or None if unanswered

    Returns:
        True if the submission is correct, False otherwise
    """
    if submitted is None:
        return False

    if isinstance(question.answer, frozenset):
        if not isinstance(submitted, _KEY_COLLECTIONS):
            return False
        if not all(isinstance(key, str) for key in submitted):
            return False
        return frozenset(submitted) == question.answer

    if not isinstance(submitted, str):
        return False
    return submitted == question.answer


def score(questions: Sequence[Question], answers: Mapping[int, Answer]) -> int:
    """
    Count correct answers over the questions in their fixed order.

    Returns:
        Number of correct answers in the range [0, len(questions)]
    """
    return sum(1 for question in questions if is_correct(question, answers.get(question.id)))


def percentage(correct: int, total: int) -> int:
    """Percentage score rounded half up; an empty session scores 0."""
    if total <= 0:
        return 0
    return int(correct * 100 / total + 0.5)


def performance_band(percent: int) -> PerformanceBand:
    """Map a percentage score to its result band."""
    if percent >= 90:
        return PerformanceBand.EXCELLENT
    if percent >= 70:
        return PerformanceBand.GOOD
    if percent >= 50:
        return PerformanceBand.AVERAGE
    return PerformanceBand.NEEDS_IMPROVEMENT


def evaluate(questions: Sequence[Question], answers: Mapping[int, Answer]) -> Dict[str, Any]:
    """
    Build a complete evaluation summary for a set of answers.

    Returns:
        Dictionary with score, total, percentage and performance band
    """
    correct = score(questions, answers)
    total = len(questions)
    percent = percentage(correct, total)
    band = performance_band(percent)

    logger.debug(
        f"Evaluated {total} questions: {correct} correct ({percent}%)",
        extra={
            'event_type': 'answers_evaluated',
            'score': correct,
            'total': total,
            'percentage': percent,
        }
    )
    return {
        'score': correct,
        'total': total,
        'percentage': percent,
        'band': band,
        'message': band.message,
    }

"""Scoring of individual answers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..config import QuizConfig

if TYPE_CHECKING:
    from ..models.question import Question


@dataclass(frozen=True)
class ScoreEvaluation:
    """Result of scoring one answer.

    Attributes
    ----------
    is_correct : bool
        Whether the submitted answer matched the answer key exactly.
    points : int
        Points earned; ``0`` for incorrect answers.
    base_points : int
        The question's value before any bonus.
    bonus_applied : bool
        ``True`` when the speed bonus multiplied ``base_points``.
    """

    is_correct: bool
    points: int
    base_points: int
    bonus_applied: bool


def score_answer(
    correct_answer: str,
    answer: str,
    time_spent: int,
    *,
    base_points: int,
    bonus_multiplier: float,
    bonus_threshold: int,
) -> ScoreEvaluation:
    """Score ``answer`` against ``correct_answer``.

    Comparison is exact and case-sensitive. A correct answer given in
    ``0 < time_spent < bonus_threshold`` seconds earns
    ``floor(base_points * bonus_multiplier)``.
    """

    if not isinstance(bonus_multiplier, (int, float)):
        raise TypeError("bonus_multiplier must be numeric")
    is_correct = answer == correct_answer
    if not is_correct:
        return ScoreEvaluation(
            is_correct=False, points=0, base_points=base_points, bonus_applied=False
        )

    bonus_applied = 0 < time_spent < bonus_threshold
    points = int(base_points * bonus_multiplier) if bonus_applied else base_points
    return ScoreEvaluation(
        is_correct=True,
        points=points,
        base_points=base_points,
        bonus_applied=bonus_applied,
    )


class ScoringEngine:
    """Applies the configured point and bonus rules to questions."""

    def __init__(self, config: Optional[QuizConfig] = None) -> None:
        self._config = config or QuizConfig()

    def base_points(self, question: "Question") -> int:
        """The question's configured value, or the default when unset."""

        if question.points is None:
            return self._config.default_question_points
        return question.points

    def evaluate(
        self, question: "Question", answer: str, time_spent: int = 0
    ) -> ScoreEvaluation:
        return score_answer(
            question.correct_answer,
            answer,
            time_spent,
            base_points=self.base_points(question),
            bonus_multiplier=self._config.bonus_multiplier,
            bonus_threshold=self._config.bonus_threshold_seconds,
        )


__all__ = ["ScoreEvaluation", "ScoringEngine", "score_answer"]

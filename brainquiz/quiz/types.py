"""Result objects returned by :class:`~brainquiz.quiz.session_manager.SessionManager`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class StartSessionResult:
    session_id: str
    total_questions: int
    time_limit: int
    category: str
    difficulty: str
    current_question: dict[str, Any]
    max_possible_score: int
    current_question_index: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "totalQuestions": self.total_questions,
            "timeLimit": self.time_limit,
            "currentQuestionIndex": self.current_question_index,
            "category": self.category,
            "difficulty": self.difficulty,
            "currentQuestion": self.current_question,
            "maxPossibleScore": self.max_possible_score,
        }


@dataclass(frozen=True)
class AnswerResult:
    """Verdict for an answer that did not finish the session."""

    is_correct: bool
    correct_answer: str
    explanation: Optional[str]
    points: int
    current_score: int
    question_index: int
    total_questions: int
    next_question: dict[str, Any]
    session_completed: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "isCorrect": self.is_correct,
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
            "points": self.points,
            "currentScore": self.current_score,
            "questionIndex": self.question_index,
            "totalQuestions": self.total_questions,
            "nextQuestion": self.next_question,
        }


@dataclass(frozen=True)
class CompletionResult:
    """Final outcome returned with the last answer of a session."""

    final_score: int
    correct_answers: int
    total_questions: int
    percentage_score: float
    is_correct: bool
    correct_answer: str
    explanation: Optional[str]
    prize_awarded: Optional[dict[str, Any]]
    can_play_again: bool
    session_completed: bool = True

    def to_json(self) -> dict[str, Any]:
        return {
            "sessionCompleted": True,
            "finalScore": self.final_score,
            "correctAnswers": self.correct_answers,
            "totalQuestions": self.total_questions,
            "percentageScore": self.percentage_score,
            "isCorrect": self.is_correct,
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
            "prizeAwarded": self.prize_awarded,
            "canPlayAgain": self.can_play_again,
        }


@dataclass(frozen=True)
class AbandonResult:
    session_id: str
    final_score: int
    questions_answered: int
    total_questions: int
    percentage_score: float

    def to_json(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "finalScore": self.final_score,
            "questionsAnswered": self.questions_answered,
            "totalQuestions": self.total_questions,
        }


__all__ = ["StartSessionResult", "AnswerResult", "CompletionResult", "AbandonResult"]

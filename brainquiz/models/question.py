from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Base
from .id_type import ID_TYPE

CATEGORIES = (
    "general_knowledge",
    "history",
    "current_affairs",
    "science",
    "sports",
    "entertainment",
)
DIFFICULTIES = ("easy", "medium", "hard")


class Question(Base):
    """A multiple-choice question with its answer key and usage statistics."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    correct_answer: Mapped[str] = mapped_column(String(255), nullable=False)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    subcategory: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    points: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=10)
    time_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    tags: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    country: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    source: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_answer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    incorrect_answer_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_questions_category_difficulty", "category", "difficulty"),
        Index("ix_questions_is_active", "is_active"),
        Index("ix_questions_country", "country"),
    )

    def __repr__(self) -> str:
        return (
            f"<Question(id={self.id}, category='{self.category}', "
            f"difficulty='{self.difficulty}', active={self.is_active})>"
        )

    @validates("category")
    def _check_category(self, _key: str, value: str) -> str:
        if value not in CATEGORIES:
            raise ValueError(f"Unknown question category '{value}'")
        return value

    @validates("difficulty")
    def _check_difficulty(self, _key: str, value: str) -> str:
        if value not in DIFFICULTIES:
            raise ValueError(f"Unknown question difficulty '{value}'")
        return value

    @property
    def success_rate(self) -> float:
        """Percentage of recorded answers that were correct."""

        total = self.correct_answer_count + self.incorrect_answer_count
        return (self.correct_answer_count / total) * 100 if total > 0 else 0.0

    def mark_as_used(self, *, timestamp: Optional[datetime] = None) -> None:
        """Bump the usage counter and refresh the last-used timestamp."""

        self.usage_count = (self.usage_count or 0) + 1
        self.last_used_at = timestamp or datetime.now(timezone.utc)

    def record_answer(self, is_correct: bool) -> None:
        """Add one answer to the correct/incorrect tallies."""

        if is_correct:
            self.correct_answer_count = Question.correct_answer_count + 1
        else:
            self.incorrect_answer_count = Question.incorrect_answer_count + 1

    def to_public_json(self) -> dict[str, Any]:
        """Serialize the question for a player, withholding the answer key."""

        return {
            "id": self.id,
            "question": self.prompt,
            "options": list(self.options or []),
            "timeLimit": self.time_limit,
            "points": self.points,
        }

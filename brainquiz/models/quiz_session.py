"""Database models for quiz sessions and their answered entries."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import as_utc, dt_iso
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .prize import Prize
    from .question import Question
    from .user import User

SESSION_STATUSES = ("active", "completed", "abandoned", "expired")
TERMINAL_STATUSES = frozenset({"completed", "abandoned", "expired"})


class QuizSession(Base):
    """One user's timed attempt at a fixed ordered sequence of questions."""

    __tablename__ = "quiz_sessions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    session_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    """Public identifier handed to the caller."""

    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    incorrect_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_possible_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    percentage_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    """Set once the session reaches a terminal state."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    end_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    time_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=300)
    """Wall-clock budget in seconds."""

    current_question_index: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    """Index of the next unanswered entry."""

    category: Mapped[str] = mapped_column(String(50), nullable=False, default="mixed")
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default="mixed")
    prize_eligible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prize_awarded_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("prizes.id", ondelete="SET NULL"), nullable=True
    )
    prize_claim_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    """Optimistic concurrency counter managed by the mapper."""

    user: Mapped["User"] = relationship(back_populates="quiz_sessions")
    entries: Mapped[list["SessionEntry"]] = relationship(
        back_populates="quiz_session",
        cascade="all, delete-orphan",
        order_by="SessionEntry.position",
    )
    prize_awarded: Mapped[Optional["Prize"]] = relationship()

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_quiz_sessions_user_created", "user_id", "start_time"),
        Index("ix_quiz_sessions_status", "status"),
        CheckConstraint(
            "status IN ('active','completed','abandoned','expired')",
            name="status_enum",
        ),
        CheckConstraint(
            "current_question_index >= 0 AND current_question_index <= total_questions",
            name="index_within_bounds",
        ),
        CheckConstraint("total_score >= 0", name="total_score_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<QuizSession(id={self.id}, session_id='{self.session_id}', "
            f"status='{self.status}', index={self.current_question_index}/"
            f"{self.total_questions}, score={self.total_score})>"
        )

    @classmethod
    def get_by_session_id(
        cls, session: Session, session_id: str, user_id: int
    ) -> Optional["QuizSession"]:
        """Fetch a session of any status owned by ``user_id``."""

        return session.scalar(
            select(cls).where(cls.session_id == session_id, cls.user_id == user_id)
        )

    @classmethod
    def get_active_for_update(
        cls, session: Session, session_id: str, user_id: int
    ) -> Optional["QuizSession"]:
        """Fetch and row-lock the active session matching ``(session_id, user_id)``.

        Backends without row locks (SQLite) ignore ``FOR UPDATE``; the
        version counter still rejects a stale concurrent write.
        """

        stmt = (
            select(cls)
            .where(
                cls.session_id == session_id,
                cls.user_id == user_id,
                cls.status == "active",
            )
            .with_for_update()
        )
        return session.scalar(stmt)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def questions_answered(self) -> int:
        return self.current_question_index

    def is_expired(self, *, reference_time: Optional[datetime] = None) -> bool:
        """Check whether more than ``time_limit`` seconds passed since start."""

        ref = reference_time or datetime.now(timezone.utc)
        elapsed = (as_utc(ref) - as_utc(self.start_time)).total_seconds()
        return elapsed > self.time_limit

    def duration_seconds(self, *, reference_time: Optional[datetime] = None) -> int:
        """Seconds from start to end, or to ``reference_time`` while running."""

        end = self.end_time or reference_time or datetime.now(timezone.utc)
        return round((as_utc(end) - as_utc(self.start_time)).total_seconds())

    def current_entry(self) -> Optional["SessionEntry"]:
        """Return the next unanswered entry, or ``None`` when past the end."""

        if self.current_question_index >= self.total_questions:
            return None
        if self.current_question_index >= len(self.entries):
            return None
        return self.entries[self.current_question_index]

    def compute_percentage(self) -> float:
        """Percentage of all questions answered correctly (0 when empty)."""

        if self.total_questions <= 0:
            return 0.0
        return self.correct_answers * 100 / self.total_questions

    def _finish(self, status: str, timestamp: Optional[datetime]) -> None:
        if self.is_terminal:
            raise ValueError(
                f"Session {self.session_id} is already {self.status}; "
                f"cannot move to {status}"
            )
        self.status = status
        self.end_time = timestamp or datetime.now(timezone.utc)
        self.percentage_score = self.compute_percentage()

    def mark_completed(
        self, *, min_score_for_prize: float, timestamp: Optional[datetime] = None
    ) -> None:
        """Move to ``completed`` and evaluate prize eligibility."""

        self._finish("completed", timestamp)
        self.prize_eligible = (self.percentage_score or 0.0) >= min_score_for_prize

    def mark_abandoned(self, *, timestamp: Optional[datetime] = None) -> None:
        self._finish("abandoned", timestamp)

    def mark_expired(self, *, timestamp: Optional[datetime] = None) -> None:
        self._finish("expired", timestamp)

    def attach_prize(self, prize: "Prize", claim_code: str) -> None:
        """Record the prize won by this session; allowed exactly once."""

        if self.prize_awarded_id is not None or self.prize_awarded is not None:
            raise ValueError(f"Session {self.session_id} already has a prize")
        self.prize_awarded = prize
        self.prize_claim_code = claim_code

    def summary_json(self) -> dict[str, Any]:
        """Compact representation used by history listings."""

        return {
            "sessionId": self.session_id,
            "status": self.status,
            "totalScore": self.total_score,
            "percentageScore": self.percentage_score,
            "correctAnswers": self.correct_answers,
            "totalQuestions": self.total_questions,
            "startTime": dt_iso(self.start_time),
            "endTime": dt_iso(self.end_time),
            "category": self.category,
            "difficulty": self.difficulty,
            "prizeAwarded": self.prize_awarded_id,
        }

    def to_json(self) -> dict[str, Any]:
        """Full review of the session including every entry and answer key."""

        data = self.summary_json()
        data.update(
            {
                "incorrectAnswers": self.incorrect_answers,
                "maxPossibleScore": self.max_possible_score,
                "timeLimit": self.time_limit,
                "duration": self.duration_seconds(),
                "currentQuestionIndex": self.current_question_index,
                "prizeEligible": self.prize_eligible,
                "questions": [entry.to_json() for entry in self.entries],
            }
        )
        return data


class SessionEntry(Base):
    """A question slot inside a session and the answer given to it."""

    __tablename__ = "quiz_session_entries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    quiz_session_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("quiz_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    question_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("questions.id", ondelete="RESTRICT"), nullable=False
    )
    user_answer: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_correct: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    time_spent: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    quiz_session: Mapped["QuizSession"] = relationship(back_populates="entries")
    question: Mapped["Question"] = relationship()

    __table_args__ = (
        UniqueConstraint("quiz_session_id", "position", name="uq_session_position"),
    )

    def __repr__(self) -> str:
        return (
            f"<SessionEntry(session={self.quiz_session_id}, position={self.position}, "
            f"question_id={self.question_id}, is_correct={self.is_correct})>"
        )

    @property
    def answered(self) -> bool:
        return self.answered_at is not None

    def to_json(self) -> dict[str, Any]:
        question = self.question
        return {
            "questionIndex": self.position,
            "question": question.prompt if question else None,
            "options": list(question.options or []) if question else [],
            "userAnswer": self.user_answer,
            "correctAnswer": question.correct_answer if question else None,
            "isCorrect": self.is_correct,
            "timeSpent": self.time_spent,
            "points": self.points,
            "explanation": question.explanation if question else None,
        }

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .prize import Prize
    from .quiz_session import QuizSession


class User(Base):
    """A phone-number identified quiz player."""

    def __init__(
        self,
        phone_number: str,
        name: Optional[str] = None,
        is_verified: bool = False,
        notifications_enabled: bool = True,
        birth_date: Optional[date] = None,
        location: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`User` record.

        Parameters
        ----------
        phone_number : str
            Unique identity key, normally in international ``+234...`` form.
        name : str, optional
            Display name used in notifications.
        is_verified : bool
            Whether the phone number passed OTP verification.
        notifications_enabled : bool
            Whether SMS notifications may be sent to this user.
        birth_date : date, optional
            Used by age-restricted prizes.
        location : str, optional
            Used by location-restricted prizes.
        created_at : datetime, optional
            Explicit creation timestamp.
        updated_at : datetime, optional
            Explicit last update timestamp.
        """

        self.phone_number = phone_number
        self.name = name
        self.is_verified = is_verified
        self.notifications_enabled = notifications_enabled
        self.birth_date = birth_date
        self.location = location
        self.total_score = 0
        self.total_quizzes = 0
        self.daily_attempts = 0
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_quizzes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    daily_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notifications_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # relationships
    prize_awards: Mapped[list["PrizeAward"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="PrizeAward.won_at",
    )
    quiz_sessions: Mapped[list["QuizSession"]] = relationship(back_populates="user")

    __table_args__ = (
        CheckConstraint("total_score >= 0", name="total_score_non_negative"),
        CheckConstraint("daily_attempts >= 0", name="daily_attempts_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, name='{self.name}', "
            f"total_quizzes={self.total_quizzes}, total_score={self.total_score})>"
        )

    @classmethod
    def get_by_phone_number(
        cls, session: Session, phone_number: str
    ) -> Optional["User"]:
        """Retrieve a user by their phone number."""

        return session.scalar(select(cls).where(cls.phone_number == phone_number))

    def age_on(self, day: date) -> Optional[int]:
        """Return the user's age in whole years on ``day``, if known."""

        if self.birth_date is None:
            return None
        born = self.birth_date
        return day.year - born.year - ((day.month, day.day) < (born.month, born.day))

    def record_quiz_result(self, score: int) -> None:
        """Fold a completed session's score into the cumulative statistics.

        The increments are emitted as SQL expressions so that two sessions
        completing at once for the same user do not overwrite each other.
        """

        if score < 0:
            raise ValueError("score must be non-negative")
        self.total_quizzes = User.total_quizzes + 1
        self.total_score = User.total_score + score

    def profile_json(self) -> dict[str, Any]:
        """Return the statistics exposed to the caller."""

        return {
            "id": self.id,
            "name": self.name,
            "totalScore": self.total_score,
            "totalQuizzes": self.total_quizzes,
            "dailyAttempts": self.daily_attempts,
            "lastAttemptDate": (
                self.last_attempt_date.isoformat() if self.last_attempt_date else None
            ),
            "prizesWon": [award.to_json() for award in self.prize_awards],
        }


class PrizeAward(Base):
    """A prize won by a user, mirrored from the prize's winner list."""

    __tablename__ = "user_prize_awards"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    prize_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("prizes.id", ondelete="RESTRICT"), nullable=False
    )
    session_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("quiz_sessions.id", ondelete="SET NULL"), nullable=True
    )
    claim_code: Mapped[str] = mapped_column(String(32), nullable=False)
    won_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped["User"] = relationship(back_populates="prize_awards")
    prize: Mapped["Prize"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<PrizeAward(id={self.id}, user_id={self.user_id}, "
            f"prize_id={self.prize_id}, claimed={self.claimed})>"
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "prizeId": self.prize_id,
            "dateWon": dt_iso(self.won_at),
            "claimed": self.claimed,
        }

"""Database models for prize inventory and winner records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    and_,
    or_,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates
from sqlalchemy.sql.elements import ColumnElement

from ..db.utils import as_utc, dt_iso
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .quiz_session import QuizSession
    from .user import User

PRIZE_TYPES = ("cash", "voucher", "product", "discount", "airtime", "data")
PRIZE_CATEGORIES = ("daily", "weekly", "monthly", "special", "consolation")
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class Prize(Base):
    """A finite pool of identical prize units awarded to winning sessions."""

    __tablename__ = "prizes"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    prize_type: Mapped[str] = mapped_column(String(20), nullable=False)
    """One of :data:`PRIZE_TYPES`; its first two letters prefix claim codes."""

    category: Mapped[str] = mapped_column(String(20), nullable=False)
    """One of :data:`PRIZE_CATEGORIES`; ``daily`` prizes may be won repeatedly."""

    minimum_score: Mapped[float] = mapped_column(Float, nullable=False, default=70)
    """Minimum percentage score required to be a candidate."""

    minimum_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    remaining_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    """Units left; only ever decremented through a conditional update."""

    distribution_time: Mapped[Optional[str]] = mapped_column(
        String(5), nullable=True, default="18:00"
    )
    distribution_days: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    min_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=18)
    max_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    locations: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    new_users_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    claim_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms_and_conditions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sponsor_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sponsor_logo: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    sponsor_contact: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    """Higher values are offered first."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    winners: Mapped[list["PrizeWinner"]] = relationship(
        back_populates="prize",
        cascade="save-update, merge",
        order_by="PrizeWinner.won_at",
    )

    __table_args__ = (
        CheckConstraint("remaining_quantity >= 0", name="remaining_non_negative"),
        CheckConstraint(
            "remaining_quantity <= total_quantity", name="remaining_within_total"
        ),
        Index("ix_prizes_category_active", "category", "is_active"),
        Index("ix_prizes_minimum_score", "minimum_score"),
        Index("ix_prizes_end_date", "end_date"),
    )

    def __init__(
        self,
        *,
        name: str,
        value: float,
        prize_type: str,
        category: str,
        total_quantity: int,
        remaining_quantity: Optional[int] = None,
        minimum_score: float = 70,
        minimum_questions: int = 5,
        priority: int = 1,
        is_active: bool = True,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        **kwargs: Any,
    ) -> None:
        if total_quantity < 0:
            raise ValueError("total_quantity must be non-negative")
        remaining = total_quantity if remaining_quantity is None else remaining_quantity
        if not 0 <= remaining <= total_quantity:
            raise ValueError("remaining_quantity must lie within [0, total_quantity]")
        super().__init__(
            name=name,
            value=value,
            prize_type=prize_type,
            category=category,
            total_quantity=total_quantity,
            remaining_quantity=remaining,
            minimum_score=minimum_score,
            minimum_questions=minimum_questions,
            priority=priority,
            is_active=is_active,
            end_date=end_date,
            **kwargs,
        )
        if start_date is not None:
            self.start_date = start_date

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Prize(id={self.id}, name='{self.name}', category='{self.category}', "
            f"remaining={self.remaining_quantity}/{self.total_quantity})>"
        )

    @validates("prize_type")
    def _check_type(self, _key: str, value: str) -> str:
        if value not in PRIZE_TYPES:
            raise ValueError(f"Unknown prize type '{value}'")
        return value

    @validates("category")
    def _check_category(self, _key: str, value: str) -> str:
        if value not in PRIZE_CATEGORIES:
            raise ValueError(f"Unknown prize category '{value}'")
        return value

    @validates("distribution_days")
    def _check_days(self, _key: str, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        unknown = [day for day in value if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown distribution days: {unknown}")
        return list(value)

    @validates("start_date", "end_date")
    def _normalize_window(
        self, _key: str, value: Optional[datetime]
    ) -> Optional[datetime]:
        # SQLite stores wall-clock text, so the window is kept in UTC.
        return as_utc(value)

    @classmethod
    def availability_clause(cls, reference_time: datetime) -> ColumnElement[bool]:
        """SQL criteria equivalent to :meth:`is_available`."""

        ref = as_utc(reference_time)
        return and_(
            cls.is_active.is_(True),
            cls.remaining_quantity > 0,
            cls.start_date <= ref,
            or_(cls.end_date.is_(None), cls.end_date > ref),
        )

    def is_available(self, *, reference_time: Optional[datetime] = None) -> bool:
        """Active, inside the validity window and with units remaining."""

        ref = as_utc(reference_time or datetime.now(timezone.utc))
        if not self.is_active or self.remaining_quantity <= 0:
            return False
        if as_utc(self.start_date) > ref:
            return False
        return self.end_date is None or as_utc(self.end_date) > ref

    def has_winner(self, session: Session, user_id: int) -> bool:
        """Whether ``user_id`` already holds a winner record for this prize."""

        stmt = (
            select(PrizeWinner.id)
            .where(PrizeWinner.prize_id == self.id, PrizeWinner.user_id == user_id)
            .limit(1)
        )
        return session.scalar(stmt) is not None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "value": self.value,
            "currency": self.currency,
            "type": self.prize_type,
            "category": self.category,
            "minimumScore": self.minimum_score,
            "minimumQuestions": self.minimum_questions,
            "remainingQuantity": self.remaining_quantity,
            "totalQuantity": self.total_quantity,
            "startDate": dt_iso(self.start_date),
            "endDate": dt_iso(self.end_date),
            "priority": self.priority,
        }


class PrizeWinner(Base):
    """One awarded unit of a prize, identified by a single-use claim code."""

    __tablename__ = "prize_winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    prize_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("prizes.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("quiz_sessions.id", ondelete="SET NULL"), nullable=True
    )
    claim_code: Mapped[str] = mapped_column(String(32), nullable=False)
    won_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    prize: Mapped["Prize"] = relationship(back_populates="winners")
    user: Mapped["User"] = relationship()
    quiz_session: Mapped[Optional["QuizSession"]] = relationship()

    __table_args__ = (
        UniqueConstraint("prize_id", "claim_code", name="uq_prize_claim_code"),
    )

    def __repr__(self) -> str:
        return (
            f"<PrizeWinner(id={self.id}, prize_id={self.prize_id}, "
            f"user_id={self.user_id}, claimed={self.claimed})>"
        )

    @classmethod
    def get_unclaimed(
        cls,
        session: Session,
        user_id: int,
        claim_code: str,
        prize_id: Optional[int] = None,
    ) -> list["PrizeWinner"]:
        """Unclaimed winner records of ``user_id`` carrying ``claim_code``.

        Codes are only unique per prize, so without ``prize_id`` more than one
        record may match.
        """

        stmt = select(cls).where(
            cls.user_id == user_id,
            cls.claim_code == claim_code,
            cls.claimed.is_(False),
        )
        if prize_id is not None:
            stmt = stmt.where(cls.prize_id == prize_id)
        return list(session.scalars(stmt.order_by(cls.won_at, cls.id)))

    def to_json(self) -> dict[str, Any]:
        return {
            "prizeId": self.prize_id,
            "userId": self.user_id,
            "claimCode": self.claim_code,
            "dateWon": dt_iso(self.won_at),
            "claimed": self.claimed,
            "claimedDate": dt_iso(self.claimed_at),
        }

"""Daily attempt gate."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import case, or_, update
from sqlalchemy.orm import Session

from ..config import QuizConfig
from ..models.user import User


class RateLimiter:
    """Caps quiz starts per user per calendar day.

    The day boundary is the configured timezone's midnight. Counters are reset
    lazily on the next access after the date changes.
    """

    def __init__(self, config: Optional[QuizConfig] = None) -> None:
        self._config = config or QuizConfig()

    @property
    def daily_max(self) -> int:
        return self._config.daily_max_attempts

    def _today(self, today: Optional[date]) -> date:
        return today if today is not None else self._config.today()

    def can_attempt(self, user: User, *, today: Optional[date] = None) -> bool:
        day = self._today(today)
        if user.last_attempt_date != day:
            return True
        return (user.daily_attempts or 0) < self.daily_max

    def attempts_remaining(self, user: User, *, today: Optional[date] = None) -> int:
        day = self._today(today)
        if user.last_attempt_date != day:
            return self.daily_max
        return max(self.daily_max - (user.daily_attempts or 0), 0)

    def record_attempt(self, user: User, *, today: Optional[date] = None) -> None:
        day = self._today(today)
        if user.last_attempt_date != day:
            user.daily_attempts = 0
            user.last_attempt_date = day
        user.daily_attempts = (user.daily_attempts or 0) + 1
        user.last_attempt_date = day

    def reserve_attempt(
        self, session: Session, user: User, *, today: Optional[date] = None
    ) -> bool:
        """Check the gate and count one attempt in a single ``UPDATE``.

        Returns ``False`` without touching the row when the user already used
        today's attempts. ``user`` is refreshed from the database either way,
        so concurrent starts for the same user can never pass the gate more
        than ``daily_max`` times.
        """

        if user.id is None:
            raise ValueError("User must be persisted before attempts are counted")
        day = self._today(today)
        stmt = (
            update(User)
            .where(
                User.id == user.id,
                or_(
                    User.last_attempt_date.is_(None),
                    User.last_attempt_date != day,
                    User.daily_attempts < self.daily_max,
                ),
            )
            .values(
                daily_attempts=case(
                    (User.last_attempt_date == day, User.daily_attempts + 1),
                    else_=1,
                ),
                last_attempt_date=day,
            )
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        session.refresh(user, ["daily_attempts", "last_attempt_date", "updated_at"])
        return result.rowcount == 1


__all__ = ["RateLimiter"]

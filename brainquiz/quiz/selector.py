"""Question sampling for new sessions."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models.question import Question

_FILTERABLE = ("category", "difficulty", "country")

# Tenths of a balanced session drawn from each band; "hard" takes the remainder.
BALANCED_SPLIT = (("easy", 3), ("medium", 5))


def balanced_counts(total: int) -> dict[str, int]:
    """Split ``total`` into easy/medium/hard counts using floor arithmetic."""

    if total < 0:
        raise ValueError("total must be non-negative")
    counts: dict[str, int] = {}
    assigned = 0
    for difficulty, share in BALANCED_SPLIT:
        counts[difficulty] = total * share // 10
        assigned += counts[difficulty]
    counts["hard"] = total - assigned
    return counts


class QuestionSelector:
    """Draws question sets from the active pool."""

    def __init__(self, *, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def get_random(
        self,
        session: Session,
        criteria: Optional[Mapping[str, str]] = None,
        limit: int = 10,
    ) -> list[Question]:
        """Return up to ``limit`` distinct active questions in random order.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        criteria : Mapping[str, str], optional
            Equality filters on ``category``, ``difficulty`` and/or ``country``.
        limit : int
            Maximum number of questions; fewer are returned when the matching
            pool is smaller.
        """

        if limit <= 0:
            return []
        stmt = select(Question).where(Question.is_active.is_(True))
        for key, value in (criteria or {}).items():
            if key not in _FILTERABLE:
                raise ValueError(f"Unsupported question filter '{key}'")
            stmt = stmt.where(getattr(Question, key) == value)
        stmt = stmt.order_by(func.random()).limit(limit)
        return list(session.scalars(stmt))

    def get_balanced(
        self, session: Session, total: int = 10, country: str = "general"
    ) -> list[Question]:
        """Return a 30/50/20 easy/medium/hard mix for ``country``, shuffled."""

        selected: list[Question] = []
        for difficulty, count in balanced_counts(total).items():
            selected.extend(
                self.get_random(
                    session, {"difficulty": difficulty, "country": country}, count
                )
            )
        self._rng.shuffle(selected)
        return selected

    def select_for_session(
        self,
        session: Session,
        *,
        category: str,
        difficulty: str,
        total: int,
        country: str = "general",
    ) -> list[Question]:
        """Pick questions for a new session; ``"mixed"`` disables a filter."""

        if category == "mixed" and difficulty == "mixed":
            return self.get_balanced(session, total, country)
        criteria: dict[str, str] = {}
        if category != "mixed":
            criteria["category"] = category
        if difficulty != "mixed":
            criteria["difficulty"] = difficulty
        return self.get_random(session, criteria, total)

    @staticmethod
    def mark_used(
        questions: Iterable[Question], *, timestamp: Optional[datetime] = None
    ) -> None:
        """Record that ``questions`` were handed out at ``timestamp``."""

        ts = timestamp or datetime.now(timezone.utc)
        for question in questions:
            question.mark_as_used(timestamp=ts)


__all__ = ["QuestionSelector", "balanced_counts", "BALANCED_SPLIT"]

"""Eligibility evaluation and race-free allocation of prize inventory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..errors import AlreadyWon, IneligibleUser, InvalidClaim, PrizeExhausted
from ..models.prize import Prize, PrizeWinner
from ..models.quiz_session import QuizSession
from ..models.user import PrizeAward, User
from ..models.utils import generate_unique_claim_code

logger = logging.getLogger(__name__)


@dataclass
class PrizeAllocation:
    """Value object describing a successful award.

    Attributes
    ----------
    prize : Prize
        The prize one unit was taken from.
    winner : PrizeWinner
        The winner record appended to the prize.
    award : PrizeAward
        The matching record appended to the user's history.
    claim_code : str
        Single-use code redeemable through :meth:`PrizeAllocator.claim`.
    """

    prize: Prize
    winner: PrizeWinner
    award: PrizeAward
    claim_code: str

    def to_json(self) -> dict:
        return {
            "name": self.prize.name,
            "value": self.prize.value,
            "type": self.prize.prize_type,
            "claimCode": self.claim_code,
        }


class PrizeAllocator:
    """Selects candidate prizes and awards them atomically.

    Candidate selection is advisory and may race with other sessions; only
    :meth:`award` decides availability, using a conditional ``UPDATE`` so the
    check and the decrement happen in one statement on the database.
    """

    def find_candidates(
        self,
        session: Session,
        percentage_score: float,
        questions_answered: int,
        category: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> list[Prize]:
        """Return available prizes whose thresholds the result meets.

        Ordered by descending ``priority`` and then descending ``value``.
        """

        ref = now or datetime.now(timezone.utc)
        stmt = select(Prize).where(
            Prize.availability_clause(ref),
            Prize.minimum_score <= percentage_score,
            Prize.minimum_questions <= questions_answered,
        )
        if category is not None:
            stmt = stmt.where(Prize.category == category)
        stmt = stmt.order_by(Prize.priority.desc(), Prize.value.desc(), Prize.id.asc())
        return list(session.scalars(stmt))

    def check_user_eligibility(
        self, prize: Prize, user: User, *, now: Optional[datetime] = None
    ) -> None:
        """Raise :class:`IneligibleUser` when ``user`` fails the prize criteria.

        Criteria the user has no data for (birth date, location) are not held
        against them.
        """

        ref = now or datetime.now(timezone.utc)
        age = user.age_on(ref.date())
        if age is not None:
            if prize.min_age is not None and age < prize.min_age:
                raise IneligibleUser(
                    f"Prize {prize.id} requires a minimum age of {prize.min_age}",
                    details={"prizeId": prize.id, "reason": "min_age"},
                )
            if prize.max_age is not None and age > prize.max_age:
                raise IneligibleUser(
                    f"Prize {prize.id} has a maximum age of {prize.max_age}",
                    details={"prizeId": prize.id, "reason": "max_age"},
                )
        if prize.locations and user.location is not None:
            if user.location not in prize.locations:
                raise IneligibleUser(
                    f"Prize {prize.id} is not offered in {user.location}",
                    details={"prizeId": prize.id, "reason": "location"},
                )
        # total_quizzes already includes the session being rewarded.
        if prize.new_users_only and (user.total_quizzes or 0) > 1:
            raise IneligibleUser(
                f"Prize {prize.id} is reserved for new users",
                details={"prizeId": prize.id, "reason": "new_users_only"},
            )

    def _reserve_unit(self, session: Session, prize: Prize, now: datetime) -> None:
        """Take one unit of ``prize`` or raise :class:`PrizeExhausted`."""

        stmt = (
            update(Prize)
            .where(Prize.id == prize.id, Prize.availability_clause(now))
            .values(remaining_quantity=Prize.remaining_quantity - 1)
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        if result.rowcount != 1:
            raise PrizeExhausted(
                f"Prize {prize.id} is no longer available",
                details={"prizeId": prize.id},
            )
        # The in-memory row is stale after the statement; reload on next access.
        session.expire(prize, ["remaining_quantity", "updated_at"])

    def award(
        self,
        session: Session,
        user: User,
        quiz_session: Optional[QuizSession],
        prize: Prize,
        *,
        now: Optional[datetime] = None,
    ) -> PrizeAllocation:
        """Award one unit of ``prize`` to ``user`` for ``quiz_session``.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session; the caller owns the transaction.
        user : User
            Winning user. ``total_quizzes`` must already count the session.
        quiz_session : QuizSession, optional
            Session the prize is won for.
        prize : Prize
            Persisted candidate prize.
        now : datetime, optional
            Reference time for the validity window and timestamps.

        Returns
        -------
        PrizeAllocation
            The winner record, the user's award record and the claim code.

        Raises
        ------
        AlreadyWon
            If the prize is not ``daily`` and the user already won it.
        IneligibleUser
            If the user fails the prize's age, location or new-user criteria.
        PrizeExhausted
            If no unit is left (or the prize left its validity window) at the
            moment of the conditional decrement.

        Notes
        -----
        Eligibility checks run before the decrement, so a rejected award never
        consumes inventory and leaves nothing to roll back.
        """

        if prize.id is None:
            raise ValueError("Prize must be persisted before it can be awarded")
        if user.id is None:
            raise ValueError("User must be persisted before winning a prize")
        ref = now or datetime.now(timezone.utc)

        if prize.category != "daily" and prize.has_winner(session, user.id):
            raise AlreadyWon(
                f"User {user.id} already won prize {prize.id}",
                details={"prizeId": prize.id},
            )
        self.check_user_eligibility(prize, user, now=ref)

        self._reserve_unit(session, prize, ref)

        claim_code = generate_unique_claim_code(prize.id, prize.prize_type, session)
        winner = PrizeWinner(
            prize_id=prize.id,
            user_id=user.id,
            session_id=quiz_session.id if quiz_session is not None else None,
            claim_code=claim_code,
            won_at=ref,
            claimed=False,
        )
        award = PrizeAward(
            prize_id=prize.id,
            session_id=quiz_session.id if quiz_session is not None else None,
            claim_code=claim_code,
            won_at=ref,
            claimed=False,
        )
        session.add(winner)
        user.prize_awards.append(award)
        if quiz_session is not None:
            quiz_session.attach_prize(prize, claim_code)
        session.flush()

        logger.info(
            f"Awarded prize {prize.id} to user {user.id} "
            f"(session {quiz_session.session_id if quiz_session else '-'})"
        )
        return PrizeAllocation(
            prize=prize, winner=winner, award=award, claim_code=claim_code
        )

    def allocate(
        self,
        session: Session,
        user: User,
        quiz_session: QuizSession,
        *,
        category: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[PrizeAllocation]:
        """Try candidates in order until one award succeeds.

        Returns ``None`` when no candidate could be awarded. Rejections are
        logged and never propagate.
        """

        candidates = self.find_candidates(
            session,
            quiz_session.percentage_score or 0.0,
            quiz_session.total_questions,
            category,
            now=now,
        )
        for prize in candidates:
            try:
                return self.award(session, user, quiz_session, prize, now=now)
            except PrizeExhausted:
                logger.info(f"Prize {prize.id} exhausted; trying next candidate")
            except (AlreadyWon, IneligibleUser) as exc:
                logger.info(f"Prize {prize.id} skipped for user {user.id}: {exc.code}")
        return None

    def claim(
        self,
        session: Session,
        prize: Prize,
        user: User,
        claim_code: str,
        *,
        now: Optional[datetime] = None,
    ) -> PrizeWinner:
        """Redeem ``claim_code``; each code can be claimed exactly once.

        Raises
        ------
        InvalidClaim
            If no unclaimed winner record matches ``(user, claim_code)`` on
            ``prize``.
        """

        ref = now or datetime.now(timezone.utc)
        stmt = (
            update(PrizeWinner)
            .where(
                PrizeWinner.prize_id == prize.id,
                PrizeWinner.user_id == user.id,
                PrizeWinner.claim_code == claim_code,
                PrizeWinner.claimed.is_(False),
            )
            .values(claimed=True, claimed_at=ref)
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        if result.rowcount != 1:
            raise InvalidClaim(
                "Invalid claim code or prize already claimed",
                details={"prizeId": prize.id},
            )

        session.execute(
            update(PrizeAward)
            .where(
                PrizeAward.user_id == user.id,
                PrizeAward.prize_id == prize.id,
                PrizeAward.claim_code == claim_code,
            )
            .values(claimed=True, claimed_at=ref)
            .execution_options(synchronize_session=False)
        )

        winner = session.scalar(
            select(PrizeWinner).where(
                PrizeWinner.prize_id == prize.id, PrizeWinner.claim_code == claim_code
            )
        )
        if winner is None:
            raise InvalidClaim(
                "Invalid claim code or prize already claimed",
                details={"prizeId": prize.id},
            )
        session.refresh(winner)
        for award in user.prize_awards:
            if award.claim_code == claim_code and award.prize_id == prize.id:
                session.refresh(award)
        logger.info(f"Prize {prize.id} claimed by user {user.id}")
        return winner


__all__ = ["PrizeAllocation", "PrizeAllocator"]

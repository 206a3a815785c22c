from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .errors import InvalidClaim, ValidationError
from .models.prize import Prize, PrizeWinner
from .models.quiz_session import QuizSession
from .models.user import User
from .notify.utils import format_phone_number, is_valid_phone_number
from .quiz.allocator import PrizeAllocator


def register_user(
    session: Session,
    phone_number: str,
    name: Optional[str] = None,
    *,
    birth_date: Optional[date] = None,
    location: Optional[str] = None,
) -> User:
    """Return the user for ``phone_number``, creating them on first contact.

    The number is normalised to international form first, so ``0803...`` and
    ``+234803...`` resolve to the same user. An existing user's name is only
    filled in when it was previously unset.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session. The caller commits.
    phone_number : str
        Raw phone number as typed by the user.
    name : Optional[str]
        Display name for new users.
    birth_date : Optional[date]
        Used by age-restricted prizes.
    location : Optional[str]
        Used by location-restricted prizes.

    Returns
    -------
    User
        The persisted ``User`` with a populated ``id``.

    Raises
    ------
    ValidationError
        If the phone number is not a valid mobile number.
    """
    if not phone_number or not is_valid_phone_number(phone_number):
        raise ValidationError(
            "Invalid phone number format", details={"field": "phoneNumber"}
        )
    formatted = format_phone_number(phone_number)

    user = User.get_by_phone_number(session, formatted)
    if user is None:
        user = User(
            phone_number=formatted,
            name=name,
            birth_date=birth_date,
            location=location,
        )
        session.add(user)
    elif name and not user.name:
        user.name = name
    session.flush()
    return user


def claim_prize(
    session: Session,
    user_id: int,
    claim_code: str,
    *,
    prize_id: Optional[int] = None,
    allocator: Optional[PrizeAllocator] = None,
    now: Optional[datetime] = None,
) -> PrizeWinner:
    """Redeem ``claim_code`` for ``user_id``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session; the caller owns the transaction.
    user_id : int
        User redeeming the code.
    claim_code : str
        Code issued at award time, case-insensitive.
    prize_id : int, optional
        Prize the code was issued for. Only needed when the same code was
        issued for more than one of the user's prizes.

    Raises
    ------
    InvalidClaim
        If the code does not belong to the user or was already claimed.
    ValidationError
        If the code is empty, or matches several prizes and ``prize_id`` is
        not given.
    """
    if not claim_code:
        raise ValidationError("Claim code is required", details={"field": "claimCode"})
    code = claim_code.strip().upper()

    winners = PrizeWinner.get_unclaimed(session, user_id, code, prize_id)
    if not winners:
        raise InvalidClaim("Invalid claim code or prize already claimed")
    if len(winners) > 1:
        raise ValidationError(
            "Claim code matches more than one prize; prizeId is required",
            details={"field": "prizeId", "prizeIds": [w.prize_id for w in winners]},
        )
    user = session.get(User, user_id)
    prize = session.get(Prize, winners[0].prize_id)
    if user is None or prize is None:
        raise InvalidClaim("Invalid claim code or prize already claimed")

    allocator = allocator or PrizeAllocator()
    return allocator.claim(
        session, prize, user, code, now=now or datetime.now(timezone.utc)
    )


def get_user_profile(session: Session, user_id: int) -> dict[str, Any]:
    """Return the user's statistics plus their best completed score."""
    user = session.get(User, user_id)
    if user is None:
        raise ValidationError(f"Unknown user {user_id}", details={"field": "userId"})
    profile = user.profile_json()
    profile["bestScore"] = get_user_best_score(session, user_id)
    return profile


def get_user_best_score(session: Session, user_id: int) -> int:
    """Highest ``total_score`` over the user's completed sessions (0 if none)."""
    best = session.scalar(
        select(func.max(QuizSession.total_score)).where(
            QuizSession.user_id == user_id, QuizSession.status == "completed"
        )
    )
    return int(best or 0)

"""Business outcomes raised by the quiz engine."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy.exc import InterfaceError, OperationalError


class QuizError(Exception):
    """Base class for expected outcomes reported to the caller verbatim."""

    code = "quiz_error"

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["data"] = dict(self.details)
        return payload


class ValidationError(QuizError):
    code = "validation_error"


class RateLimited(QuizError):
    code = "rate_limited"


class InsufficientQuestions(QuizError):
    code = "insufficient_questions"


class SessionNotFound(QuizError):
    code = "session_not_found"


class SessionExpired(QuizError):
    code = "session_expired"


class NoCurrentQuestion(QuizError):
    code = "no_current_question"


class ConcurrentUpdate(QuizError):
    code = "concurrent_update"


class PrizeExhausted(QuizError):
    code = "prize_exhausted"


class AlreadyWon(QuizError):
    code = "already_won"


class IneligibleUser(QuizError):
    code = "ineligible_user"


class InvalidClaim(QuizError):
    code = "invalid_claim"


class StoreUnavailable(RuntimeError):
    """The store collaborator failed; reported as a generic internal failure."""


@contextmanager
def store_errors() -> Iterator[None]:
    """Re-raise driver level failures as :class:`StoreUnavailable`."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailable(f"Store operation failed: {exc.orig!r}") from exc


__all__ = [
    "QuizError",
    "ValidationError",
    "RateLimited",
    "InsufficientQuestions",
    "SessionNotFound",
    "SessionExpired",
    "NoCurrentQuestion",
    "ConcurrentUpdate",
    "PrizeExhausted",
    "AlreadyWon",
    "IneligibleUser",
    "InvalidClaim",
    "StoreUnavailable",
    "store_errors",
]

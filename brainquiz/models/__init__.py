from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .user import User, PrizeAward  # noqa: F401
from .question import Question  # noqa: F401
from .prize import Prize, PrizeWinner  # noqa: F401
from .quiz_session import QuizSession, SessionEntry  # noqa: F401

__all__ = [
    "Base",
    "User",
    "PrizeAward",
    "Question",
    "Prize",
    "PrizeWinner",
    "QuizSession",
    "SessionEntry",
]

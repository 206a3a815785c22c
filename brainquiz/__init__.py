"""Timed multiple-choice quiz sessions with race-free prize allocation."""

from .config import QuizConfig
from .errors import QuizError, StoreUnavailable

__all__ = ["QuizConfig", "QuizError", "StoreUnavailable"]

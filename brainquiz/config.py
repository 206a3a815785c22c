"""Static configuration for the quiz engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv


def _env_number(name: str, default: float, *, cast=float):
    """Read a numeric environment variable, failing loudly on garbage."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return cast(default)
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(
            f"Environment variable '{name}' must be numeric, got {raw!r}"
        ) from exc


@dataclass(frozen=True)
class QuizConfig:
    """Named options consumed by the session and prize components.

    Attributes
    ----------
    daily_max_attempts : int
        Quiz starts allowed per user per calendar day.
    min_score_for_prize : float
        Minimum percentage score that makes a completed session prize eligible.
    bonus_multiplier : float
        Factor applied to a correct answer given faster than the threshold.
    bonus_threshold_seconds : int
        Answers strictly faster than this (and above zero) earn the bonus.
    default_session_time_limit_seconds : int
        Wall-clock budget of a session.
    default_question_points : int
        Base points for questions that do not define their own value.
    min_questions, max_questions, default_total_questions : int
        Bounds and default for the number of questions in a session.
    default_country : str
        Country pool used by balanced selection.
    prize_category : Optional[str]
        Prize category considered on completion; ``None`` considers all.
    timezone : str
        IANA zone name defining the daily attempt boundary.
    """

    daily_max_attempts: int = 3
    min_score_for_prize: float = 70.0
    bonus_multiplier: float = 2.0
    bonus_threshold_seconds: int = 10
    default_session_time_limit_seconds: int = 300
    default_question_points: int = 10
    min_questions: int = 5
    max_questions: int = 20
    default_total_questions: int = 10
    default_country: str = "general"
    prize_category: Optional[str] = "daily"
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if self.daily_max_attempts < 0:
            raise ValueError("daily_max_attempts must be non-negative")
        if not isinstance(self.bonus_multiplier, (int, float)):
            raise TypeError("bonus_multiplier must be a number")
        if self.bonus_multiplier < 1:
            raise ValueError("bonus_multiplier must be at least 1")
        if self.default_session_time_limit_seconds <= 0:
            raise ValueError("default_session_time_limit_seconds must be positive")
        if not 0 < self.min_questions <= self.max_questions:
            raise ValueError("question bounds must satisfy 0 < min <= max")
        if not self.min_questions <= self.default_total_questions <= self.max_questions:
            raise ValueError("default_total_questions must lie within the bounds")
        # Fail early on unknown zone names.
        ZoneInfo(self.timezone)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def today(self, now: Optional[datetime] = None) -> date:
        """Return the calendar date of ``now`` in the configured timezone."""
        if now is None:
            return datetime.now(self.tzinfo).date()
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        return now.astimezone(self.tzinfo).date()

    @classmethod
    def from_env(cls) -> "QuizConfig":
        """Build a configuration from environment variables (and ``.env``)."""
        load_dotenv()
        category = os.getenv("PRIZE_CATEGORY", "daily").strip()
        return cls(
            daily_max_attempts=_env_number("MAX_DAILY_ATTEMPTS", 3, cast=int),
            min_score_for_prize=_env_number("MINIMUM_SCORE_FOR_PRIZE", 70.0),
            bonus_multiplier=_env_number("BONUS_MULTIPLIER", 2.0),
            bonus_threshold_seconds=_env_number("BONUS_THRESHOLD_SECONDS", 10, cast=int),
            default_session_time_limit_seconds=_env_number(
                "QUIZ_SESSION_DURATION", 300, cast=int
            ),
            timezone=os.getenv("QUIZ_TIMEZONE", "UTC"),
            prize_category=category or None,
        )


__all__ = ["QuizConfig"]

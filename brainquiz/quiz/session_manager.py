"""State machine driving quiz sessions from start to a terminal state."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from ..config import QuizConfig
from ..db.utils import as_utc
from ..errors import (
    ConcurrentUpdate,
    InsufficientQuestions,
    NoCurrentQuestion,
    RateLimited,
    SessionExpired,
    SessionNotFound,
    ValidationError,
    store_errors,
)
from ..models.question import CATEGORIES, DIFFICULTIES, Question
from ..models.quiz_session import QuizSession, SessionEntry
from ..models.user import User
from ..notify.notifier import Notifier
from .allocator import PrizeAllocation, PrizeAllocator
from .rate_limit import RateLimiter
from .scoring import ScoringEngine
from .selector import QuestionSelector
from .types import AbandonResult, AnswerResult, CompletionResult, StartSessionResult

logger = logging.getLogger(__name__)

SESSION_CATEGORIES = CATEGORIES + ("mixed",)
SESSION_DIFFICULTIES = DIFFICULTIES + ("mixed",)


class SessionManager:
    """Orchestrates selection, scoring, rate limiting and prize allocation.

    Each public operation runs as its own unit of work on a fresh ORM session
    obtained from ``session_factory`` and commits before returning, so calls
    can run in parallel from independent request handlers.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        config: Optional[QuizConfig] = None,
        *,
        selector: Optional[QuestionSelector] = None,
        scorer: Optional[ScoringEngine] = None,
        rate_limiter: Optional[RateLimiter] = None,
        allocator: Optional[PrizeAllocator] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        """Create a session manager.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory producing SQLAlchemy sessions bound to the store.
        config : QuizConfig, optional
            Static options; defaults to :class:`QuizConfig` defaults.
        selector, scorer, rate_limiter, allocator : optional
            Component overrides, mainly for tests.
        notifier : Notifier, optional
            Fire-and-forget notification sink. Failures are logged only.
        """

        self._session_factory = session_factory
        self._config = config or QuizConfig()
        self.selector = selector or QuestionSelector()
        self.scorer = scorer or ScoringEngine(self._config)
        self.rate_limiter = rate_limiter or RateLimiter(self._config)
        self.allocator = allocator or PrizeAllocator()
        self.notifier = notifier or Notifier()

    @property
    def config(self) -> QuizConfig:
        return self._config

    # -------- validation --------
    def _validate_start(self, category: str, difficulty: str, total: Any) -> int:
        if category not in SESSION_CATEGORIES:
            raise ValidationError(
                f"Unknown category '{category}'", details={"field": "category"}
            )
        if difficulty not in SESSION_DIFFICULTIES:
            raise ValidationError(
                f"Unknown difficulty '{difficulty}'", details={"field": "difficulty"}
            )
        if isinstance(total, bool) or not isinstance(total, int):
            raise ValidationError(
                "totalQuestions must be an integer", details={"field": "totalQuestions"}
            )
        lo, hi = self._config.min_questions, self._config.max_questions
        if not lo <= total <= hi:
            raise ValidationError(
                f"totalQuestions must be between {lo} and {hi}",
                details={"field": "totalQuestions"},
            )
        return total

    @staticmethod
    def _validate_answer(answer: Any, time_spent: Any) -> None:
        if not isinstance(answer, str) or not answer:
            raise ValidationError("Answer is required", details={"field": "answer"})
        if isinstance(time_spent, bool) or not isinstance(time_spent, int):
            raise ValidationError(
                "timeSpent must be an integer", details={"field": "timeSpent"}
            )
        if time_spent < 0:
            raise ValidationError(
                "timeSpent must be non-negative", details={"field": "timeSpent"}
            )

    @staticmethod
    def _load_user(session: Session, user_id: int) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise ValidationError(f"Unknown user {user_id}", details={"field": "userId"})
        return user

    # -------- operations --------
    def start(
        self,
        user_id: int,
        category: str = "mixed",
        difficulty: str = "mixed",
        total_questions: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> StartSessionResult:
        """Start a new session for ``user_id``.

        Raises
        ------
        ValidationError
            For unknown users, categories, difficulties or an out-of-range
            question count.
        RateLimited
            If the user used up today's attempts.
        InsufficientQuestions
            If the pool cannot supply ``total_questions`` matching questions.
        """

        if total_questions is None:
            total_questions = self._config.default_total_questions
        total = self._validate_start(category, difficulty, total_questions)
        ref = as_utc(now or datetime.now(timezone.utc))
        today = self._config.today(ref)

        with store_errors(), self._session_factory.begin() as session:
            user = self._load_user(session, user_id)
            # Counted up front; a failed start rolls the attempt back.
            if not self.rate_limiter.reserve_attempt(session, user, today=today):
                raise RateLimited(
                    "Daily quiz limit reached. Please try again tomorrow.",
                    details={
                        "dailyAttempts": user.daily_attempts,
                        "maxAttempts": self.rate_limiter.daily_max,
                    },
                )

            questions = self.selector.select_for_session(
                session,
                category=category,
                difficulty=difficulty,
                total=total,
                country=self._config.default_country,
            )
            if len(questions) < total:
                raise InsufficientQuestions(
                    "Not enough questions available for the selected criteria",
                    details={"available": len(questions), "requested": total},
                )

            quiz_session = QuizSession(
                session_id=str(uuid.uuid4()),
                user_id=user.id,
                total_questions=len(questions),
                correct_answers=0,
                incorrect_answers=0,
                total_score=0,
                max_possible_score=sum(self.scorer.base_points(q) for q in questions),
                status="active",
                start_time=ref,
                time_limit=self._config.default_session_time_limit_seconds,
                current_question_index=0,
                category=category,
                difficulty=difficulty,
                prize_eligible=False,
            )
            quiz_session.entries = [
                SessionEntry(position=idx, question_id=q.id, points=0)
                for idx, q in enumerate(questions)
            ]
            session.add(quiz_session)

            self.selector.mark_used(questions, timestamp=ref)
            session.flush()

            result = StartSessionResult(
                session_id=quiz_session.session_id,
                total_questions=quiz_session.total_questions,
                time_limit=quiz_session.time_limit,
                category=category,
                difficulty=difficulty,
                current_question=questions[0].to_public_json(),
                max_possible_score=quiz_session.max_possible_score,
            )

        logger.info(
            f"Quiz session {result.session_id} started for user {user_id} "
            f"({category}/{difficulty}, {result.total_questions} questions)"
        )
        return result

    def submit_answer(
        self,
        session_id: str,
        user_id: int,
        answer: str,
        time_spent: int = 0,
        *,
        now: Optional[datetime] = None,
    ) -> Union[AnswerResult, CompletionResult]:
        """Score ``answer`` for the current question and advance the session.

        Raises
        ------
        ValidationError
            For an empty answer or a negative/non-integer ``time_spent``.
        SessionNotFound
            If no active session matches ``(session_id, user_id)``.
        SessionExpired
            If the time limit passed; the session is persisted as expired first.
        NoCurrentQuestion
            If every question was already answered.
        ConcurrentUpdate
            If another request advanced the same session concurrently.
        """

        self._validate_answer(answer, time_spent)
        ref = as_utc(now or datetime.now(timezone.utc))
        expired = False
        allocation: Optional[PrizeAllocation] = None
        result: Union[AnswerResult, CompletionResult, None] = None
        notify_payload: Optional[dict[str, Any]] = None

        try:
            with store_errors(), self._session_factory.begin() as session:
                quiz_session = QuizSession.get_active_for_update(
                    session, session_id, user_id
                )
                if quiz_session is None:
                    raise SessionNotFound(
                        "Quiz session not found or already completed",
                        details={"sessionId": session_id},
                    )

                if quiz_session.is_expired(reference_time=ref):
                    quiz_session.mark_expired(timestamp=ref)
                    expired = True
                else:
                    result, allocation, notify_payload = self._apply_answer(
                        session, quiz_session, answer, time_spent, ref
                    )
        except StaleDataError as exc:
            raise ConcurrentUpdate(
                "Quiz session was modified by a concurrent request",
                details={"sessionId": session_id},
            ) from exc

        if expired:
            logger.info(f"Quiz session {session_id} expired")
            raise SessionExpired(
                "Quiz session has expired",
                details={"sessionId": session_id, "sessionStatus": "expired"},
            )

        if result is None:
            raise NoCurrentQuestion(
                "No answer was recorded", details={"sessionId": session_id}
            )
        if notify_payload is not None:
            if allocation is not None:
                self._notify_safely(user_id, "prize_won", notify_payload)
            self._notify_safely(user_id, "quiz_result", notify_payload)
        return result

    def _apply_answer(
        self,
        session: Session,
        quiz_session: QuizSession,
        answer: str,
        time_spent: int,
        ref: datetime,
    ) -> tuple[
        Union[AnswerResult, CompletionResult],
        Optional[PrizeAllocation],
        Optional[dict[str, Any]],
    ]:
        entry = quiz_session.current_entry()
        if entry is None:
            raise NoCurrentQuestion(
                "No current question available",
                details={"sessionId": quiz_session.session_id},
            )
        question = session.get(Question, entry.question_id)
        if question is None:
            raise NoCurrentQuestion(
                "Question not found",
                details={"sessionId": quiz_session.session_id},
            )

        evaluation = self.scorer.evaluate(question, answer, time_spent)
        entry.user_answer = answer
        entry.is_correct = evaluation.is_correct
        entry.time_spent = time_spent
        entry.points = evaluation.points
        entry.answered_at = ref
        if evaluation.is_correct:
            quiz_session.correct_answers += 1
            quiz_session.total_score += evaluation.points
        else:
            quiz_session.incorrect_answers += 1
        quiz_session.current_question_index += 1
        question.record_answer(evaluation.is_correct)

        if quiz_session.current_question_index < quiz_session.total_questions:
            next_entry = quiz_session.entries[quiz_session.current_question_index]
            next_question = session.get(Question, next_entry.question_id)
            if next_question is None:
                raise NoCurrentQuestion(
                    "Question not found",
                    details={"sessionId": quiz_session.session_id},
                )
            session.flush()
            return (
                AnswerResult(
                    is_correct=evaluation.is_correct,
                    correct_answer=question.correct_answer,
                    explanation=question.explanation,
                    points=evaluation.points,
                    current_score=quiz_session.total_score,
                    question_index=quiz_session.current_question_index,
                    total_questions=quiz_session.total_questions,
                    next_question=next_question.to_public_json(),
                ),
                None,
                None,
            )

        return self._complete(session, quiz_session, question, evaluation.is_correct, ref)

    def _complete(
        self,
        session: Session,
        quiz_session: QuizSession,
        last_question: Question,
        last_correct: bool,
        ref: datetime,
    ) -> tuple[CompletionResult, Optional[PrizeAllocation], dict[str, Any]]:
        quiz_session.mark_completed(
            min_score_for_prize=self._config.min_score_for_prize, timestamp=ref
        )
        user = quiz_session.user
        user.record_quiz_result(quiz_session.total_score)
        # Resolve the SQL-side increments before eligibility reads them.
        session.flush()
        session.refresh(user, ["total_quizzes", "total_score"])

        allocation: Optional[PrizeAllocation] = None
        if quiz_session.prize_eligible:
            allocation = self.allocator.allocate(
                session,
                user,
                quiz_session,
                category=self._config.prize_category,
                now=ref,
            )
        session.flush()

        result = CompletionResult(
            final_score=quiz_session.total_score,
            correct_answers=quiz_session.correct_answers,
            total_questions=quiz_session.total_questions,
            percentage_score=quiz_session.percentage_score or 0.0,
            is_correct=last_correct,
            correct_answer=last_question.correct_answer,
            explanation=last_question.explanation,
            prize_awarded=allocation.to_json() if allocation is not None else None,
            can_play_again=self.rate_limiter.can_attempt(
                user, today=self._config.today(ref)
            ),
        )
        logger.info(
            f"Quiz session {quiz_session.session_id} completed: "
            f"score={quiz_session.total_score} "
            f"percentage={quiz_session.percentage_score:.1f} "
            f"prize={'yes' if allocation else 'no'}"
        )
        payload = {
            "phone_number": user.phone_number,
            "name": user.name or "Player",
            "notifications_enabled": user.notifications_enabled,
            "correct_answers": quiz_session.correct_answers,
            "total_questions": quiz_session.total_questions,
        }
        if allocation is not None:
            payload["prize_name"] = allocation.prize.name
            payload["claim_code"] = allocation.claim_code
        return result, allocation, payload

    def abandon(
        self, session_id: str, user_id: int, *, now: Optional[datetime] = None
    ) -> AbandonResult:
        """Abandon the active session; no prize is evaluated.

        Raises
        ------
        SessionNotFound
            If no active session matches, including one already terminal.
        """

        ref = as_utc(now or datetime.now(timezone.utc))
        try:
            with store_errors(), self._session_factory.begin() as session:
                quiz_session = QuizSession.get_active_for_update(
                    session, session_id, user_id
                )
                if quiz_session is None:
                    raise SessionNotFound(
                        "Active quiz session not found",
                        details={"sessionId": session_id},
                    )
                quiz_session.mark_abandoned(timestamp=ref)
                session.flush()
                result = AbandonResult(
                    session_id=quiz_session.session_id,
                    final_score=quiz_session.total_score,
                    questions_answered=quiz_session.questions_answered,
                    total_questions=quiz_session.total_questions,
                    percentage_score=quiz_session.percentage_score or 0.0,
                )
        except StaleDataError as exc:
            raise ConcurrentUpdate(
                "Quiz session was modified by a concurrent request",
                details={"sessionId": session_id},
            ) from exc

        logger.info(f"Quiz session {session_id} abandoned by user {user_id}")
        return result

    def get_session(self, session_id: str, user_id: int) -> dict[str, Any]:
        """Return the full review of a session of any status."""

        with store_errors(), self._session_factory() as session:
            quiz_session = QuizSession.get_by_session_id(session, session_id, user_id)
            if quiz_session is None:
                raise SessionNotFound(
                    "Quiz session not found", details={"sessionId": session_id}
                )
            return quiz_session.to_json()

    def history(self, user_id: int, page: int = 1, limit: int = 10) -> dict[str, Any]:
        """Return the user's sessions, newest first, with pagination metadata."""

        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        with store_errors(), self._session_factory() as session:
            total = session.scalar(
                select(func.count(QuizSession.id)).where(QuizSession.user_id == user_id)
            ) or 0
            rows = session.scalars(
                select(QuizSession)
                .where(QuizSession.user_id == user_id)
                .order_by(QuizSession.start_time.desc(), QuizSession.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            total_pages = -(-total // limit)
            return {
                "sessions": [row.summary_json() for row in rows],
                "pagination": {
                    "currentPage": page,
                    "totalPages": total_pages,
                    "totalSessions": total,
                    "hasNext": page < total_pages,
                    "hasPrev": page > 1,
                },
            }

    def _notify_safely(
        self, user_id: int, template_kind: str, payload: dict[str, Any]
    ) -> None:
        if not payload.get("notifications_enabled", True):
            return
        try:
            self.notifier.notify(user_id, template_kind, payload)
        except Exception:
            logger.exception(f"Failed to send {template_kind} notification to user {user_id}")


__all__ = ["SessionManager", "SESSION_CATEGORIES", "SESSION_DIFFICULTIES"]

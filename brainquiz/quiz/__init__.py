from .allocator import PrizeAllocation, PrizeAllocator
from .rate_limit import RateLimiter
from .scoring import ScoreEvaluation, ScoringEngine, score_answer
from .selector import QuestionSelector, balanced_counts
from .session_manager import SessionManager
from .types import AbandonResult, AnswerResult, CompletionResult, StartSessionResult

__all__ = [
    "PrizeAllocation",
    "PrizeAllocator",
    "RateLimiter",
    "ScoreEvaluation",
    "ScoringEngine",
    "score_answer",
    "QuestionSelector",
    "balanced_counts",
    "SessionManager",
    "AbandonResult",
    "AnswerResult",
    "CompletionResult",
    "StartSessionResult",
]

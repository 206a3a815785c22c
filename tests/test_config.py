import os
import unittest
from datetime import date, datetime, timezone
from unittest.mock import patch

from brainquiz.config import QuizConfig


class TestQuizConfig(unittest.TestCase):
    def test_defaults(self):
        config = QuizConfig()
        self.assertEqual(config.daily_max_attempts, 3)
        self.assertEqual(config.min_score_for_prize, 70.0)
        self.assertEqual(config.bonus_multiplier, 2.0)
        self.assertEqual(config.bonus_threshold_seconds, 10)
        self.assertEqual(config.default_session_time_limit_seconds, 300)
        self.assertEqual(config.prize_category, "daily")

    def test_invalid_values_rejected(self):
        with self.assertRaises(ValueError):
            QuizConfig(default_session_time_limit_seconds=0)
        with self.assertRaises(ValueError):
            QuizConfig(min_questions=10, max_questions=5)
        with self.assertRaises(TypeError):
            QuizConfig(bonus_multiplier="2")

    def test_from_env_reads_overrides(self):
        env = {
            "MAX_DAILY_ATTEMPTS": "5",
            "MINIMUM_SCORE_FOR_PRIZE": "80",
            "BONUS_MULTIPLIER": "1.5",
            "QUIZ_SESSION_DURATION": "120",
            "QUIZ_TIMEZONE": "Africa/Lagos",
            "PRIZE_CATEGORY": "",
        }
        with patch("brainquiz.config.load_dotenv"), patch.dict(os.environ, env):
            config = QuizConfig.from_env()
        self.assertEqual(config.daily_max_attempts, 5)
        self.assertEqual(config.min_score_for_prize, 80.0)
        self.assertEqual(config.bonus_multiplier, 1.5)
        self.assertEqual(config.default_session_time_limit_seconds, 120)
        self.assertEqual(config.timezone, "Africa/Lagos")
        self.assertIsNone(config.prize_category)

    def test_from_env_rejects_non_numeric(self):
        with patch("brainquiz.config.load_dotenv"), patch.dict(
            os.environ, {"BONUS_MULTIPLIER": "double"}
        ):
            with self.assertRaises(ValueError):
                QuizConfig.from_env()

    def test_today_uses_configured_timezone(self):
        # 23:30 UTC is already the next day in Lagos (UTC+1).
        now = datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc)
        self.assertEqual(QuizConfig().today(now), date(2026, 10, 18))
        self.assertEqual(QuizConfig(timezone="Africa/Lagos").today(now), date(2026, 10, 19))

    def test_today_requires_aware_datetime(self):
        with self.assertRaises(ValueError):
            QuizConfig().today(datetime(2026, 10, 18, 12, 0))


if __name__ == "__main__":
    unittest.main()

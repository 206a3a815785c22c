import unittest
from datetime import date, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from brainquiz.config import QuizConfig
from brainquiz.models import Base, User
from brainquiz.quiz.rate_limit import RateLimiter


class TestRateLimiter(unittest.TestCase):
    def setUp(self):
        self.limiter = RateLimiter(QuizConfig(daily_max_attempts=3))
        self.user = User(phone_number="+2348030000001")
        self.today = date(2026, 10, 18)

    def test_denies_after_daily_maximum(self):
        for _ in range(3):
            self.assertTrue(self.limiter.can_attempt(self.user, today=self.today))
            self.limiter.record_attempt(self.user, today=self.today)
        self.assertFalse(self.limiter.can_attempt(self.user, today=self.today))
        self.assertEqual(self.limiter.attempts_remaining(self.user, today=self.today), 0)

    def test_new_day_resets_counter(self):
        self.user.daily_attempts = 3
        self.user.last_attempt_date = self.today
        tomorrow = self.today + timedelta(days=1)

        self.assertTrue(self.limiter.can_attempt(self.user, today=tomorrow))
        self.assertEqual(self.limiter.attempts_remaining(self.user, today=tomorrow), 3)
        self.limiter.record_attempt(self.user, today=tomorrow)
        self.assertEqual(self.user.daily_attempts, 1)
        self.assertEqual(self.user.last_attempt_date, tomorrow)

    def test_fresh_user_can_attempt(self):
        self.assertIsNone(self.user.last_attempt_date)
        self.assertTrue(self.limiter.can_attempt(self.user, today=self.today))
        self.assertEqual(self.limiter.attempts_remaining(self.user, today=self.today), 3)


class TestReserveAttempt(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, future=True, expire_on_commit=False)
        self.limiter = RateLimiter(QuizConfig(daily_max_attempts=3))
        self.today = date(2026, 10, 18)

    def tearDown(self):
        self.engine.dispose()

    def test_counts_up_to_maximum_then_refuses(self):
        with self.Session() as session:
            user = User(phone_number="+2348030000001")
            session.add(user)
            session.flush()

            for expected in (1, 2, 3):
                self.assertTrue(self.limiter.reserve_attempt(session, user, today=self.today))
                self.assertEqual(user.daily_attempts, expected)
                self.assertEqual(user.last_attempt_date, self.today)
            self.assertFalse(self.limiter.reserve_attempt(session, user, today=self.today))
            self.assertEqual(user.daily_attempts, 3)

    def test_new_day_restarts_at_one(self):
        with self.Session() as session:
            user = User(phone_number="+2348030000001")
            user.daily_attempts = 3
            user.last_attempt_date = self.today
            session.add(user)
            session.flush()

            tomorrow = self.today + timedelta(days=1)
            self.assertTrue(self.limiter.reserve_attempt(session, user, today=tomorrow))
            self.assertEqual(user.daily_attempts, 1)
            self.assertEqual(user.last_attempt_date, tomorrow)

    def test_unsaved_user_rejected(self):
        with self.Session() as session:
            with self.assertRaises(ValueError):
                self.limiter.reserve_attempt(
                    session, User(phone_number="+2348030000001"), today=self.today
                )


if __name__ == "__main__":
    unittest.main()

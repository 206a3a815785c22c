import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from brainquiz.errors import InvalidClaim, ValidationError
from brainquiz.models import Base, Prize, PrizeWinner, User
from brainquiz.quiz.allocator import PrizeAllocator
from brainquiz.workflows import (
    claim_prize,
    get_user_best_score,
    get_user_profile,
    register_user,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class WorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, future=True, expire_on_commit=False)

    def tearDown(self):
        self.engine.dispose()

    def test_register_user_is_idempotent_per_number(self):
        with self.Session() as session:
            first = register_user(session, "0803 123 4567")
            second = register_user(session, "+2348031234567", name="Ada")
            session.commit()

            self.assertEqual(first.id, second.id)
            self.assertEqual(first.phone_number, "+2348031234567")
            self.assertEqual(second.name, "Ada")

            again = register_user(session, "08031234567", name="Someone else")
            self.assertEqual(again.name, "Ada")

    def test_register_user_rejects_invalid_numbers(self):
        with self.Session() as session:
            with self.assertRaises(ValidationError):
                register_user(session, "12345")
            with self.assertRaises(ValidationError):
                register_user(session, "")

    def test_claim_prize_flow(self):
        with self.Session() as session:
            user = register_user(session, "08031234567", name="Ada")
            prize = Prize(
                name="Data Bundle - 1GB",
                value=500,
                prize_type="data",
                category="daily",
                total_quantity=3,
                start_date=NOW - timedelta(days=1),
            )
            session.add(prize)
            session.flush()
            allocation = PrizeAllocator().award(session, user, None, prize, now=NOW)

            winner = claim_prize(session, user.id, allocation.claim_code.lower(), now=NOW)
            self.assertTrue(winner.claimed)
            with self.assertRaises(InvalidClaim):
                claim_prize(session, user.id, allocation.claim_code, now=NOW)
            with self.assertRaises(InvalidClaim):
                claim_prize(session, user.id, "DA000000ZZZZ", now=NOW)
            with self.assertRaises(ValidationError):
                claim_prize(session, user.id, "", now=NOW)

    def test_claim_code_shared_by_two_prizes(self):
        with self.Session() as session:
            user = register_user(session, "08031234567", name="Ada")
            airtime = Prize(
                name="MTN Airtime",
                value=1000,
                prize_type="airtime",
                category="daily",
                total_quantity=3,
                start_date=NOW - timedelta(days=1),
            )
            bundle = Prize(
                name="Airtime Bonus",
                value=200,
                prize_type="airtime",
                category="consolation",
                total_quantity=3,
                start_date=NOW - timedelta(days=1),
            )
            session.add_all([airtime, bundle])
            session.flush()
            for prize in (airtime, bundle):
                session.add(
                    PrizeWinner(
                        prize_id=prize.id,
                        user_id=user.id,
                        claim_code="AI123456ABCD",
                        won_at=NOW,
                        claimed=False,
                    )
                )
            session.flush()

            with self.assertRaises(ValidationError) as ctx:
                claim_prize(session, user.id, "AI123456ABCD", now=NOW)
            self.assertEqual(
                sorted(ctx.exception.details["prizeIds"]), sorted([airtime.id, bundle.id])
            )

            winner = claim_prize(
                session, user.id, "AI123456ABCD", prize_id=bundle.id, now=NOW
            )
            self.assertEqual(winner.prize_id, bundle.id)
            self.assertTrue(winner.claimed)

            # Only the airtime record is left unclaimed, so no prize id is needed.
            remaining = claim_prize(session, user.id, "AI123456ABCD", now=NOW)
            self.assertEqual(remaining.prize_id, airtime.id)
            with self.assertRaises(InvalidClaim):
                claim_prize(session, user.id, "AI123456ABCD", now=NOW)

    def test_profile_and_best_score(self):
        with self.Session() as session:
            user = register_user(session, "08031234567", name="Ada")
            self.assertEqual(get_user_best_score(session, user.id), 0)
            profile = get_user_profile(session, user.id)
            self.assertEqual(profile["totalQuizzes"], 0)
            self.assertEqual(profile["bestScore"], 0)
            self.assertEqual(profile["prizesWon"], [])
            with self.assertRaises(ValidationError):
                get_user_profile(session, 999)


if __name__ == "__main__":
    unittest.main()

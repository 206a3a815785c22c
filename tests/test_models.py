import unittest
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import create_engine, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from brainquiz.models import (
    Base,
    Prize,
    PrizeWinner,
    Question,
    QuizSession,
    SessionEntry,
    User,
)
from brainquiz.models.utils import build_claim_code, generate_unique_claim_code

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class DBTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, future=True, expire_on_commit=False)

    def tearDown(self):
        self.engine.dispose()

    def _prize(self, **kwargs) -> Prize:
        params = dict(
            name="Data Bundle",
            value=500,
            prize_type="data",
            category="daily",
            total_quantity=2,
            start_date=NOW - timedelta(days=1),
        )
        params.update(kwargs)
        return Prize(**params)


class ModelTestCase(DBTestCase):
    def test_user_get_by_phone_number(self):
        with self.Session() as session:
            session.add(User(phone_number="+2348030000001", name="Ada"))
            session.commit()

            found = User.get_by_phone_number(session, "+2348030000001")
            assert found is not None
            self.assertEqual(found.name, "Ada")
            self.assertIsNone(User.get_by_phone_number(session, "+2348030000009"))

    def test_user_phone_number_unique(self):
        with self.Session() as session:
            session.add(User(phone_number="+2348030000001"))
            session.commit()
            session.add(User(phone_number="+2348030000001"))
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_user_age_on(self):
        user = User(phone_number="+2348030000001", birth_date=date(2000, 10, 19))
        self.assertEqual(user.age_on(date(2026, 10, 18)), 25)
        self.assertEqual(user.age_on(date(2026, 10, 19)), 26)
        self.assertIsNone(User(phone_number="+2348030000002").age_on(date(2026, 1, 1)))

    def test_record_quiz_result_accumulates(self):
        with self.Session() as session:
            user = User(phone_number="+2348030000001")
            session.add(user)
            session.flush()
            user.record_quiz_result(40)
            session.flush()
            user.record_quiz_result(25)
            session.commit()
            self.assertEqual(user.total_quizzes, 2)
            self.assertEqual(user.total_score, 65)
            with self.assertRaises(ValueError):
                user.record_quiz_result(-1)

    def test_question_validation_and_tallies(self):
        with self.assertRaises(ValueError):
            Question(prompt="?", options=["a"], correct_answer="a",
                     category="cooking", difficulty="easy")
        with self.assertRaises(ValueError):
            Question(prompt="?", options=["a"], correct_answer="a",
                     category="science", difficulty="impossible")

        with self.Session() as session:
            question = Question(
                prompt="How many chambers does a human heart have?",
                options=["2", "3", "4", "5"],
                correct_answer="4",
                category="science",
                difficulty="easy",
            )
            session.add(question)
            session.flush()
            question.record_answer(True)
            question.record_answer(False)
            session.commit()
            self.assertEqual(question.correct_answer_count, 1)
            self.assertEqual(question.incorrect_answer_count, 1)
            self.assertEqual(question.success_rate, 50.0)
            self.assertNotIn("correctAnswer", question.to_public_json())
            self.assertEqual(question.to_public_json()["options"], ["2", "3", "4", "5"])

    def test_prize_quantity_validation(self):
        with self.assertRaises(ValueError):
            self._prize(total_quantity=2, remaining_quantity=3)
        with self.assertRaises(ValueError):
            self._prize(total_quantity=-1)
        with self.assertRaises(ValueError):
            self._prize(prize_type="car")
        with self.assertRaises(ValueError):
            self._prize(distribution_days=["someday"])
        self.assertEqual(self._prize().remaining_quantity, 2)

    def test_prize_remaining_cannot_go_negative_in_database(self):
        with self.Session() as session:
            prize = self._prize(total_quantity=1)
            session.add(prize)
            session.commit()
            with self.assertRaises(IntegrityError):
                session.execute(
                    update(Prize)
                    .where(Prize.id == prize.id)
                    .values(remaining_quantity=-1)
                )

    def test_prize_is_available(self):
        prize = self._prize(end_date=NOW + timedelta(days=1))
        self.assertTrue(prize.is_available(reference_time=NOW))
        self.assertFalse(prize.is_available(reference_time=NOW + timedelta(days=2)))
        self.assertFalse(prize.is_available(reference_time=NOW - timedelta(days=2)))
        prize.remaining_quantity = 0
        self.assertFalse(prize.is_available(reference_time=NOW))

    def test_claim_code_unique_per_prize(self):
        with self.Session() as session:
            user = User(phone_number="+2348030000001")
            prize = self._prize()
            session.add_all([user, prize])
            session.flush()
            session.add_all(
                [
                    PrizeWinner(prize_id=prize.id, user_id=user.id, claim_code="DA123456ABCD"),
                    PrizeWinner(prize_id=prize.id, user_id=user.id, claim_code="DA123456ABCD"),
                ]
            )
            with self.assertRaises(IntegrityError):
                session.flush()

    def test_build_claim_code_format(self):
        code = build_claim_code("airtime", timestamp_ms=1760000123456)
        self.assertEqual(code[:8], "AI123456")
        self.assertRegex(code, r"^AI123456[0-9A-Z]{4}$")
        with self.assertRaises(ValueError):
            build_claim_code("")

    def test_generate_unique_claim_code_avoids_existing(self):
        with self.Session() as session:
            user = User(phone_number="+2348030000001")
            prize = self._prize()
            session.add_all([user, prize])
            session.flush()
            taken = generate_unique_claim_code(prize.id, prize.prize_type, session)
            session.add(PrizeWinner(prize_id=prize.id, user_id=user.id, claim_code=taken))
            session.flush()
            fresh = generate_unique_claim_code(prize.id, prize.prize_type, session)
            self.assertNotEqual(fresh, taken)


class QuizSessionModelTestCase(DBTestCase):
    def _session(self, **kwargs) -> QuizSession:
        params = dict(
            session_id=str(uuid.uuid4()),
            user_id=1,
            total_questions=10,
            status="active",
            start_time=NOW,
            time_limit=300,
        )
        params.update(kwargs)
        return QuizSession(**params)

    def test_expiry_uses_time_limit(self):
        quiz_session = self._session()
        self.assertFalse(quiz_session.is_expired(reference_time=NOW + timedelta(seconds=300)))
        self.assertTrue(quiz_session.is_expired(reference_time=NOW + timedelta(seconds=301)))

    def test_terminal_transitions_are_one_way(self):
        quiz_session = self._session(correct_answers=8, current_question_index=10)
        quiz_session.mark_completed(min_score_for_prize=70, timestamp=NOW)
        self.assertEqual(quiz_session.status, "completed")
        self.assertEqual(quiz_session.percentage_score, 80.0)
        self.assertTrue(quiz_session.prize_eligible)
        with self.assertRaises(ValueError):
            quiz_session.mark_abandoned(timestamp=NOW)
        with self.assertRaises(ValueError):
            quiz_session.mark_expired(timestamp=NOW)

    def test_below_threshold_not_eligible(self):
        quiz_session = self._session(correct_answers=6, current_question_index=10)
        quiz_session.mark_completed(min_score_for_prize=70, timestamp=NOW)
        self.assertEqual(quiz_session.percentage_score, 60.0)
        self.assertFalse(quiz_session.prize_eligible)

    def test_prize_attached_only_once(self):
        quiz_session = self._session()
        prize = self._prize()
        quiz_session.attach_prize(prize, "DA123456ABCD")
        with self.assertRaises(ValueError):
            quiz_session.attach_prize(prize, "DA654321ABCD")

    def test_index_bounds_enforced_by_database(self):
        with self.Session() as session:
            user = User(phone_number="+2348030000001")
            session.add(user)
            session.flush()
            session.add(self._session(user_id=user.id, current_question_index=11))
            with self.assertRaises(IntegrityError):
                session.flush()

    def test_to_json_lists_entries_in_order(self):
        with self.Session() as session:
            user = User(phone_number="+2348030000001")
            question = Question(
                prompt="What is the chemical symbol for gold?",
                options=["Go", "Au", "Ag", "Gd"],
                correct_answer="Au",
                category="science",
                difficulty="medium",
            )
            session.add_all([user, question])
            session.flush()
            quiz_session = self._session(user_id=user.id, total_questions=2)
            quiz_session.entries = [
                SessionEntry(position=1, question_id=question.id),
                SessionEntry(position=0, question_id=question.id),
            ]
            session.add(quiz_session)
            session.commit()
            session.expire(quiz_session, ["entries"])

            data = quiz_session.to_json()
            self.assertEqual([q["questionIndex"] for q in data["questions"]], [0, 1])
            self.assertEqual(data["questions"][0]["correctAnswer"], "Au")
            self.assertEqual(data["status"], "active")


if __name__ == "__main__":
    unittest.main()

import unittest

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, OperationalError

from brainquiz.errors import (
    PrizeExhausted,
    RateLimited,
    StoreUnavailable,
    store_errors,
)


class TestQuizErrors(unittest.TestCase):
    def test_to_json_carries_code_and_details(self):
        err = RateLimited("Daily quiz limit reached", details={"maxAttempts": 3})
        self.assertEqual(
            err.to_json(),
            {
                "error": "rate_limited",
                "message": "Daily quiz limit reached",
                "data": {"maxAttempts": 3},
            },
        )
        self.assertEqual(PrizeExhausted("gone").to_json(), {
            "error": "prize_exhausted",
            "message": "gone",
        })


class TestStoreErrors(unittest.TestCase):
    def test_operational_errors_become_store_unavailable(self):
        engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        try:
            with self.assertRaises(StoreUnavailable) as ctx:
                with store_errors(), engine.connect() as conn:
                    conn.execute(text("SELECT * FROM missing_table"))
            self.assertIsInstance(ctx.exception.__cause__, OperationalError)
        finally:
            engine.dispose()

    def test_integrity_errors_pass_through(self):
        engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        try:
            with engine.begin() as conn:
                conn.execute(text("CREATE TABLE t (id INTEGER PRIMARY KEY)"))
            with self.assertRaises(IntegrityError):
                with store_errors(), engine.begin() as conn:
                    conn.execute(text("INSERT INTO t (id) VALUES (1)"))
                    conn.execute(text("INSERT INTO t (id) VALUES (1)"))
        finally:
            engine.dispose()


if __name__ == "__main__":
    unittest.main()

"""Utility helpers for the models package."""

from __future__ import annotations

import secrets
import string
import time
from typing import Optional
from sqlalchemy.orm import Session

BASE36_ALPHABET = string.digits + string.ascii_uppercase


def build_claim_code(prize_type: str, timestamp_ms: Optional[int] = None) -> str:
    """Return a claim code of the form ``PP######RRRR``.

    ``PP`` is the first two letters of the prize type, ``######`` the last six
    digits of the millisecond timestamp and ``RRRR`` four random base-36
    characters. The result is uppercase.
    """

    if not prize_type:
        raise ValueError("prize_type must not be empty")
    ms = int(time.time() * 1000) if timestamp_ms is None else timestamp_ms
    stamp = str(ms)[-6:].zfill(6)
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(4))
    return f"{prize_type[:2]}{stamp}{suffix}".upper()


def generate_unique_claim_code(
    prize_id: int,
    prize_type: str,
    session: Optional[Session] = None,
    max_attempts: int = 32,
) -> str:
    """Return a claim code not yet used by any winner of ``prize_id``.

    When a session is provided, the helper retries if the generated value is
    already present (or pending) in ``PrizeWinner.claim_code`` for the prize.
    The ``(prize_id, claim_code)`` unique constraint remains the final guard.
    """

    winner_cls = None
    select_stmt = None
    if session is not None:
        from sqlalchemy import select
        from .prize import PrizeWinner

        winner_cls = PrizeWinner
        select_stmt = select

    attempts = 0
    while attempts < max_attempts:
        candidate = build_claim_code(prize_type)

        if session is not None and winner_cls is not None and select_stmt is not None:
            collision = False
            for obj in session.new:
                if (
                    isinstance(obj, winner_cls)
                    and obj.prize_id == prize_id
                    and obj.claim_code == candidate
                ):
                    collision = True
                    break
            if collision:
                attempts += 1
                continue

            exists = session.scalar(
                select_stmt(winner_cls.id).where(
                    winner_cls.prize_id == prize_id,
                    winner_cls.claim_code == candidate,
                )
            )
            if exists is not None:
                attempts += 1
                continue

        return candidate

    raise RuntimeError("Unable to generate a unique claim code after multiple attempts")

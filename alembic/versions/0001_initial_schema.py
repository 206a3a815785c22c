"""initial quiz schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_type():
    return sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", _id_type(), autoincrement=True, nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("total_score", sa.Integer(), nullable=False),
        sa.Column("total_quizzes", sa.Integer(), nullable=False),
        sa.Column("daily_attempts", sa.Integer(), nullable=False),
        sa.Column("last_attempt_date", sa.Date(), nullable=True),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "total_score >= 0", name=op.f("ck_users_total_score_non_negative")
        ),
        sa.CheckConstraint(
            "daily_attempts >= 0", name=op.f("ck_users_daily_attempts_non_negative")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("phone_number", name=op.f("uq_users_phone_number")),
    )

    op.create_table(
        "questions",
        sa.Column("id", _id_type(), autoincrement=True, nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("correct_answer", sa.String(length=255), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("subcategory", sa.String(length=100), nullable=True),
        sa.Column("difficulty", sa.String(length=10), nullable=False),
        sa.Column("points", sa.Integer(), nullable=True),
        sa.Column("time_limit", sa.Integer(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("country", sa.String(length=50), nullable=False),
        sa.Column("source", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column("correct_answer_count", sa.Integer(), nullable=False),
        sa.Column("incorrect_answer_count", sa.Integer(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_questions")),
    )
    op.create_index(
        "ix_questions_category_difficulty",
        "questions",
        ["category", "difficulty"],
        unique=False,
    )
    op.create_index("ix_questions_is_active", "questions", ["is_active"], unique=False)
    op.create_index("ix_questions_country", "questions", ["country"], unique=False)

    op.create_table(
        "prizes",
        sa.Column("id", _id_type(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("prize_type", sa.String(length=20), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("minimum_score", sa.Float(), nullable=False),
        sa.Column("minimum_questions", sa.Integer(), nullable=False),
        sa.Column("total_quantity", sa.Integer(), nullable=False),
        sa.Column("remaining_quantity", sa.Integer(), nullable=False),
        sa.Column("distribution_time", sa.String(length=5), nullable=True),
        sa.Column("distribution_days", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("min_age", sa.Integer(), nullable=True),
        sa.Column("max_age", sa.Integer(), nullable=True),
        sa.Column("locations", sa.JSON(), nullable=True),
        sa.Column("new_users_only", sa.Boolean(), nullable=False),
        sa.Column("claim_instructions", sa.Text(), nullable=True),
        sa.Column("terms_and_conditions", sa.Text(), nullable=True),
        sa.Column("sponsor_name", sa.String(length=255), nullable=True),
        sa.Column("sponsor_logo", sa.String(length=512), nullable=True),
        sa.Column("sponsor_contact", sa.String(length=255), nullable=True),
        sa.Column("image_url", sa.String(length=512), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "remaining_quantity >= 0", name=op.f("ck_prizes_remaining_non_negative")
        ),
        sa.CheckConstraint(
            "remaining_quantity <= total_quantity",
            name=op.f("ck_prizes_remaining_within_total"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prizes")),
    )
    op.create_index(
        "ix_prizes_category_active", "prizes", ["category", "is_active"], unique=False
    )
    op.create_index("ix_prizes_minimum_score", "prizes", ["minimum_score"], unique=False)
    op.create_index("ix_prizes_end_date", "prizes", ["end_date"], unique=False)

    op.create_table(
        "quiz_sessions",
        sa.Column("id", _id_type(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", _id_type(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("correct_answers", sa.Integer(), nullable=False),
        sa.Column("incorrect_answers", sa.Integer(), nullable=False),
        sa.Column("total_score", sa.Integer(), nullable=False),
        sa.Column("max_possible_score", sa.Integer(), nullable=False),
        sa.Column("percentage_score", sa.Float(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_limit", sa.Integer(), nullable=False),
        sa.Column("current_question_index", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("difficulty", sa.String(length=10), nullable=False),
        sa.Column("prize_eligible", sa.Boolean(), nullable=False),
        sa.Column("prize_awarded_id", _id_type(), nullable=True),
        sa.Column("prize_claim_code", sa.String(length=32), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "status IN ('active','completed','abandoned','expired')",
            name=op.f("ck_quiz_sessions_status_enum"),
        ),
        sa.CheckConstraint(
            "current_question_index >= 0 AND current_question_index <= total_questions",
            name=op.f("ck_quiz_sessions_index_within_bounds"),
        ),
        sa.CheckConstraint(
            "total_score >= 0", name=op.f("ck_quiz_sessions_total_score_non_negative")
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_quiz_sessions_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["prize_awarded_id"],
            ["prizes.id"],
            name=op.f("fk_quiz_sessions_prize_awarded_id_prizes"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_quiz_sessions")),
        sa.UniqueConstraint("session_id", name=op.f("uq_quiz_sessions_session_id")),
    )
    op.create_index(
        "ix_quiz_sessions_user_created",
        "quiz_sessions",
        ["user_id", "start_time"],
        unique=False,
    )
    op.create_index("ix_quiz_sessions_status", "quiz_sessions", ["status"], unique=False)

    op.create_table(
        "quiz_session_entries",
        sa.Column("id", _id_type(), autoincrement=True, nullable=False),
        sa.Column("quiz_session_id", _id_type(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("question_id", _id_type(), nullable=False),
        sa.Column("user_answer", sa.String(length=255), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("time_spent", sa.Integer(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["quiz_session_id"],
            ["quiz_sessions.id"],
            name=op.f("fk_quiz_session_entries_quiz_session_id_quiz_sessions"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["questions.id"],
            name=op.f("fk_quiz_session_entries_question_id_questions"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_quiz_session_entries")),
        sa.UniqueConstraint("quiz_session_id", "position", name="uq_session_position"),
    )
    op.create_index(
        op.f("ix_quiz_session_entries_quiz_session_id"),
        "quiz_session_entries",
        ["quiz_session_id"],
        unique=False,
    )

    op.create_table(
        "prize_winners",
        sa.Column("id", _id_type(), autoincrement=True, nullable=False),
        sa.Column("prize_id", _id_type(), nullable=False),
        sa.Column("user_id", _id_type(), nullable=False),
        sa.Column("session_id", _id_type(), nullable=True),
        sa.Column("claim_code", sa.String(length=32), nullable=False),
        sa.Column("won_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("claimed", sa.Boolean(), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["prize_id"],
            ["prizes.id"],
            name=op.f("fk_prize_winners_prize_id_prizes"),
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_prize_winners_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["quiz_sessions.id"],
            name=op.f("fk_prize_winners_session_id_quiz_sessions"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prize_winners")),
        sa.UniqueConstraint("prize_id", "claim_code", name="uq_prize_claim_code"),
    )
    op.create_index(
        op.f("ix_prize_winners_prize_id"), "prize_winners", ["prize_id"], unique=False
    )
    op.create_index(
        op.f("ix_prize_winners_user_id"), "prize_winners", ["user_id"], unique=False
    )

    op.create_table(
        "user_prize_awards",
        sa.Column("id", _id_type(), autoincrement=True, nullable=False),
        sa.Column("user_id", _id_type(), nullable=False),
        sa.Column("prize_id", _id_type(), nullable=False),
        sa.Column("session_id", _id_type(), nullable=True),
        sa.Column("claim_code", sa.String(length=32), nullable=False),
        sa.Column("won_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("claimed", sa.Boolean(), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_user_prize_awards_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["prize_id"],
            ["prizes.id"],
            name=op.f("fk_user_prize_awards_prize_id_prizes"),
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["quiz_sessions.id"],
            name=op.f("fk_user_prize_awards_session_id_quiz_sessions"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_prize_awards")),
    )
    op.create_index(
        op.f("ix_user_prize_awards_user_id"),
        "user_prize_awards",
        ["user_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_user_prize_awards_user_id"), table_name="user_prize_awards")
    op.drop_table("user_prize_awards")
    op.drop_index(op.f("ix_prize_winners_user_id"), table_name="prize_winners")
    op.drop_index(op.f("ix_prize_winners_prize_id"), table_name="prize_winners")
    op.drop_table("prize_winners")
    op.drop_index(
        op.f("ix_quiz_session_entries_quiz_session_id"),
        table_name="quiz_session_entries",
    )
    op.drop_table("quiz_session_entries")
    op.drop_index("ix_quiz_sessions_status", table_name="quiz_sessions")
    op.drop_index("ix_quiz_sessions_user_created", table_name="quiz_sessions")
    op.drop_table("quiz_sessions")
    op.drop_index("ix_prizes_end_date", table_name="prizes")
    op.drop_index("ix_prizes_minimum_score", table_name="prizes")
    op.drop_index("ix_prizes_category_active", table_name="prizes")
    op.drop_table("prizes")
    op.drop_index("ix_questions_country", table_name="questions")
    op.drop_index("ix_questions_is_active", table_name="questions")
    op.drop_index("ix_questions_category_difficulty", table_name="questions")
    op.drop_table("questions")
    op.drop_table("users")

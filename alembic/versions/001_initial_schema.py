"""Initial schema - profiles, assessments, assessment_questions, question_images.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("api_key_hash", sa.String(255), unique=True, nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('admin', 'user')", name="ck_profiles_role"),
    )

    op.create_table(
        "assessments",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("store_name", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_assessments_user_created",
        "assessments",
        ["user_id", sa.text("created_at DESC")],
    )

    op.create_table(
        "assessment_questions",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "assessment_id",
            sa.UUID(),
            sa.ForeignKey("assessments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_number", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "assessment_id", "question_number", name="uq_assessment_questions_number"
        ),
        sa.CheckConstraint(
            "answer IS NULL OR answer IN ('yes', 'no', 'n/a')",
            name="ck_assessment_questions_answer",
        ),
    )

    op.create_table(
        "question_images",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "question_id",
            sa.UUID(),
            sa.ForeignKey("assessment_questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_question_images_question_created",
        "question_images",
        ["question_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_question_images_question_created", table_name="question_images")
    op.drop_table("question_images")
    op.drop_table("assessment_questions")
    op.drop_index("ix_assessments_user_created", table_name="assessments")
    op.drop_table("assessments")
    op.drop_table("profiles")

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial schema for the adaptive path engine.

Creates the curriculum tables read by the engine (concepts, lessons,
lesson_concepts, content_fragments, generated_problems, submissions) and
the tables it owns:
- cognitive_profiles: Per-user mastery map and frustration level
- adaptive_actions: Pending and completed interventions
- processed_submissions: Analysis idempotency markers

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-11-03
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create curriculum and adaptive engine tables."""

    # =========================================================================
    # Curriculum
    # =========================================================================
    op.create_table(
        "concepts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_concepts"),
        sa.UniqueConstraint("name", name="uq_concepts_name"),
    )

    op.create_table(
        "lessons",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("objective", sa.Text(), nullable=True),
        sa.Column("language", sa.String(20), nullable=False, server_default="javascript"),
        sa.Column("test_code", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_lessons"),
    )

    op.create_table(
        "lesson_concepts",
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("concept_id", sa.Integer(), nullable=False),
        sa.Column("mastery_weight", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint(
            "mastery_weight BETWEEN 0 AND 100",
            name="ck_lesson_concepts_weight_range",
        ),
        sa.ForeignKeyConstraint(
            ["lesson_id"],
            ["lessons.id"],
            name="fk_lesson_concepts_lesson_id_lessons",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["concept_id"],
            ["concepts.id"],
            name="fk_lesson_concepts_concept_id_concepts",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("lesson_id", "concept_id", name="pk_lesson_concepts"),
    )
    op.create_index(
        "ix_lesson_concepts_lesson_position",
        "lesson_concepts",
        ["lesson_id", "position"],
    )

    op.create_table(
        "content_fragments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("concept_id", sa.Integer(), nullable=False),
        sa.Column("is_dynamic", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["concept_id"],
            ["concepts.id"],
            name="fk_content_fragments_concept_id_concepts",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_content_fragments"),
    )
    op.create_index(
        "ix_content_fragments_concept_id",
        "content_fragments",
        ["concept_id"],
    )

    op.create_table(
        "generated_problems",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column(
            "boilerplate_code",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("test_cases", sa.Text(), nullable=False),
        sa.Column("difficulty", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("source_concept_id", sa.Integer(), nullable=True),
        sa.Column("target_concept_id", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["source_concept_id"],
            ["concepts.id"],
            name="fk_generated_problems_source_concept_id_concepts",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["target_concept_id"],
            ["concepts.id"],
            name="fk_generated_problems_target_concept_id_concepts",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_generated_problems"),
    )

    op.create_table(
        "submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("submitted_code", sa.Text(), nullable=False),
        sa.Column("time_to_solve_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("code_churn", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["lesson_id"],
            ["lessons.id"],
            name="fk_submissions_lesson_id_lessons",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_submissions"),
    )
    op.create_index(
        "ix_submissions_student_lesson",
        "submissions",
        ["student_id", "lesson_id"],
    )

    # =========================================================================
    # Adaptive engine
    # =========================================================================
    op.create_table(
        "cognitive_profiles",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "concept_mastery",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("frustration_level", sa.Float(), nullable=False, server_default="0.1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "frustration_level >= 0 AND frustration_level <= 1",
            name="ck_cognitive_profiles_frustration_range",
        ),
        sa.PrimaryKeyConstraint("user_id", name="pk_cognitive_profiles"),
    )

    op.create_table(
        "adaptive_actions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action_type", sa.String(30), nullable=False),
        sa.Column("related_id", sa.Integer(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "action_type IN ('INJECT_FRAGMENT', 'GENERATE_PROBLEM')",
            name="ck_adaptive_actions_action_type_valid",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_adaptive_actions"),
    )
    op.create_index(
        "ix_adaptive_actions_user_pending",
        "adaptive_actions",
        ["user_id", "is_completed", "created_at"],
    )

    op.create_table(
        "processed_submissions",
        sa.Column("submission_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "processed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["submission_id"],
            ["submissions.id"],
            name="fk_processed_submissions_submission_id_submissions",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("submission_id", name="pk_processed_submissions"),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("processed_submissions")
    op.drop_index("ix_adaptive_actions_user_pending", table_name="adaptive_actions")
    op.drop_table("adaptive_actions")
    op.drop_table("cognitive_profiles")
    op.drop_index("ix_submissions_student_lesson", table_name="submissions")
    op.drop_table("submissions")
    op.drop_table("generated_problems")
    op.drop_index("ix_content_fragments_concept_id", table_name="content_fragments")
    op.drop_table("content_fragments")
    op.drop_index("ix_lesson_concepts_lesson_position", table_name="lesson_concepts")
    op.drop_table("lesson_concepts")
    op.drop_table("lessons")
    op.drop_table("concepts")

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive engine models: cognitive profiles, actions and processed submissions."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, utc_now


class CognitiveProfile(Base, TimestampMixin):
    """Per-user learner model.

    concept_mastery maps concept ids (JSON object keys, so strings) to a
    mastery estimate in [0, 1]. Absent concepts have mastery 0.
    """

    __tablename__ = "cognitive_profiles"
    __table_args__ = (
        CheckConstraint(
            "frustration_level >= 0 AND frustration_level <= 1",
            name="frustration_range",
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    concept_mastery: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    frustration_level: Mapped[float] = mapped_column(Float, nullable=False, default=0.1)


class AdaptiveAction(Base):
    """An intervention waiting to be consumed by the student's client."""

    __tablename__ = "adaptive_actions"
    __table_args__ = (
        CheckConstraint(
            "action_type IN ('INJECT_FRAGMENT', 'GENERATE_PROBLEM')",
            name="action_type_valid",
        ),
        Index("ix_adaptive_actions_user_pending", "user_id", "is_completed", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    action_type: Mapped[str] = mapped_column(String(30), nullable=False)
    related_id: Mapped[int] = mapped_column(Integer, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )


class ProcessedSubmission(Base):
    """Marks a submission whose analysis has been committed."""

    __tablename__ = "processed_submissions"

    submission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

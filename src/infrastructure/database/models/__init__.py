# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models."""

from src.infrastructure.database.models.adaptive import (
    AdaptiveAction,
    CognitiveProfile,
    ProcessedSubmission,
)
from src.infrastructure.database.models.base import Base, TimestampMixin
from src.infrastructure.database.models.curriculum import (
    Concept,
    ContentFragment,
    GeneratedProblem,
    Lesson,
    LessonConcept,
    Submission,
)

__all__ = [
    "Base",
    "TimestampMixin",
    # Curriculum
    "Concept",
    "Lesson",
    "LessonConcept",
    "ContentFragment",
    "GeneratedProblem",
    "Submission",
    # Adaptive
    "CognitiveProfile",
    "AdaptiveAction",
    "ProcessedSubmission",
]

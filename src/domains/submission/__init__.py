# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson submission domain."""

from src.domains.submission.service import (
    AnalysisJobEnqueuer,
    LessonNotFoundError,
    SubmissionService,
    SubmissionServiceError,
)

__all__ = [
    "AnalysisJobEnqueuer",
    "LessonNotFoundError",
    "SubmissionService",
    "SubmissionServiceError",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson submission endpoint."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Request, status

from src.api.dependencies import AuthenticatedUser, Submissions
from src.api.middleware.rate_limit import RATE_LIMIT_EXECUTION, limiter
from src.core.execution.client import UnsupportedLanguageError
from src.domains.submission.service import LessonNotFoundError
from src.models.submission import SubmitSolutionRequest, SubmitSolutionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{lesson_id}/submit",
    response_model=SubmitSolutionResponse,
    summary="Submit a lesson solution",
    description="Grades the solution against the lesson's tests and records "
    "the attempt. Passing submissions are analyzed in the background.",
)
@limiter.limit(RATE_LIMIT_EXECUTION)
async def submit_solution(
    request: Request,
    lesson_id: UUID,
    data: SubmitSolutionRequest,
    current_user: AuthenticatedUser,
    service: Submissions,
) -> SubmitSolutionResponse:
    """Submit the current user's solution to a lesson.

    Raises:
        HTTPException: 404 if the lesson does not exist, 400 if its
            language cannot be executed.
    """
    try:
        return await service.submit(current_user.id, lesson_id, data)
    except LessonNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except UnsupportedLanguageError as e:
        logger.error("Lesson %s has unsupported language %s", lesson_id, e.language)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

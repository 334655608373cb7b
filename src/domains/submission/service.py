# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson submission service.

Grades a student's solution against the lesson's hidden tests, stores the
submission with its telemetry and, when the solution passes, enqueues one
AnalyzeSubmission job for the adaptive engine.

The submission is committed before the job is enqueued so the worker can
always read it. Enqueue failures are logged and do not fail the request:
the student's grade never depends on the analysis pipeline.
"""

import logging
from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.execution.client import (
    ExecutionClient,
    extract_error_message,
    extract_failure_message,
)
from src.infrastructure.database.models import Lesson, Submission
from src.models.submission import SubmitSolutionRequest, SubmitSolutionResponse

logger = logging.getLogger(__name__)

MSG_SUBMISSION_PASSED = "Solution submitted successfully!"
MSG_SUBMISSION_FAILED = "Your solution did not pass all the tests."
MSG_SUBMISSION_ERROR = "Your code has an error: {error}"


class SubmissionServiceError(Exception):
    """Base exception for submission service errors."""

    pass


class LessonNotFoundError(SubmissionServiceError):
    """Raised when the lesson being submitted to does not exist."""

    pass


class AnalysisJobEnqueuer(ABC):
    """Hands passing submissions to the analysis pipeline."""

    @abstractmethod
    def enqueue_analysis(self, user_id: UUID, lesson_id: UUID, submission_id: UUID) -> str:
        """Enqueue an AnalyzeSubmission job and return its id."""


class SubmissionService:
    """Service for grading and recording lesson submissions.

    Example:
        >>> service = SubmissionService(db, ExecutionClient(), DramatiqJobEnqueuer())
        >>> result = await service.submit(user_id, lesson_id, request)
    """

    def __init__(
        self,
        db: AsyncSession,
        executor: ExecutionClient,
        enqueuer: AnalysisJobEnqueuer,
    ) -> None:
        self._db = db
        self._executor = executor
        self._enqueuer = enqueuer

    async def submit(
        self,
        user_id: UUID,
        lesson_id: UUID,
        request: SubmitSolutionRequest,
    ) -> SubmitSolutionResponse:
        """Grade, store and (on success) enqueue analysis of a submission.

        Args:
            user_id: Submitting student.
            lesson_id: Lesson being solved.
            request: Code and telemetry.

        Returns:
            Grading result with the stored submission id.

        Raises:
            LessonNotFoundError: If the lesson does not exist.
        """
        lesson = await self._db.get(Lesson, lesson_id)
        if lesson is None:
            raise LessonNotFoundError(f"Lesson {lesson_id} not found")

        full_code = request.code
        if lesson.test_code:
            full_code = f"{request.code}\n\n{lesson.test_code}"

        execution = await self._executor.execute(full_code, lesson.language)

        submission = Submission(
            lesson_id=lesson.id,
            student_id=user_id,
            submitted_code=request.code,
            time_to_solve_seconds=request.time_to_solve_seconds,
            code_churn=request.code_churn,
            is_correct=execution.success,
        )
        self._db.add(submission)
        await self._db.commit()

        logger.info(
            "Submission %s stored: user=%s, lesson=%s, passed=%s",
            submission.id,
            user_id,
            lesson_id,
            execution.success,
        )

        if not execution.success:
            message = extract_failure_message(execution.output)
            if message is None:
                error = extract_error_message(execution)
                if error:
                    message = MSG_SUBMISSION_ERROR.format(error=error)
                else:
                    message = MSG_SUBMISSION_FAILED
            return SubmitSolutionResponse(
                success=False,
                message=message,
                submission_id=submission.id,
                output=execution.output or (execution.error or ""),
            )

        try:
            job_id = self._enqueuer.enqueue_analysis(user_id, lesson.id, submission.id)
            logger.info("Analysis job %s enqueued for submission %s", job_id, submission.id)
        except Exception as e:
            logger.error(
                "Failed to enqueue analysis for submission %s: %s",
                submission.id,
                e,
            )

        return SubmitSolutionResponse(
            success=True,
            message=MSG_SUBMISSION_PASSED,
            submission_id=submission.id,
            output=execution.output,
        )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive path engine background tasks.

Tasks:
    - analyze_submission: Update the cognitive profile after a passing
      submission and record at most one adaptive action.

The task is enqueued by the lesson submission endpoint through
DramatiqJobEnqueuer. Retry policy comes from WORKER_* settings. A
submission that did not pass is rejected without retries.
"""

from typing import Any
from uuid import UUID

import dramatiq

from src.core.adaptive.engine import (
    AnalysisEngine,
    AnalysisError,
    AnalysisOutcome,
    AnalyzeSubmissionJob,
    SubmissionMismatchError,
    SubmissionNotPassingError,
)
from src.core.adaptive.policy import DecisionPolicy
from src.core.config import get_settings
from src.core.intelligence.generation import ContentGenerationService
from src.core.intelligence.llm.client import LLMClient
from src.domains.adaptive.repository import AdaptiveRepository
from src.domains.submission.service import AnalysisJobEnqueuer
from src.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from src.infrastructure.background.tasks.base import run_async
from src.infrastructure.database.connection import get_worker_session
from src.utils.logging import get_logger

# Setup broker before defining actors
setup_dramatiq()

logger = get_logger(__name__)

_worker_settings = get_settings().worker


class InvalidJobPayloadError(AnalysisError):
    """Raised when a job carries identifiers that are not UUIDs."""

    pass


def parse_job(user_id: str, lesson_id: str, submission_id: str) -> AnalyzeSubmissionJob:
    """Build a job from its serialized arguments.

    Raises:
        InvalidJobPayloadError: If any identifier is not a valid UUID.
    """
    try:
        return AnalyzeSubmissionJob(
            user_id=UUID(str(user_id)),
            lesson_id=UUID(str(lesson_id)),
            submission_id=UUID(str(submission_id)),
        )
    except ValueError as e:
        raise InvalidJobPayloadError(f"Invalid job payload: {e}") from e


async def process_submission_analysis(job: AnalyzeSubmissionJob) -> AnalysisOutcome:
    """Run one analysis inside a worker database transaction."""
    settings = get_settings()

    async with get_worker_session() as session:
        policy = DecisionPolicy(
            ContentGenerationService(session, LLMClient(llm_settings=settings.llm)),
            settings.adaptive,
        )
        engine = AnalysisEngine(AdaptiveRepository(session), policy, settings.adaptive)
        return await engine.analyze(job)


@dramatiq.actor(
    queue_name=Queues.ADAPTIVE,
    max_retries=_worker_settings.max_retries,
    min_backoff=_worker_settings.min_backoff_ms,
    max_backoff=_worker_settings.max_backoff_ms,
    time_limit=_worker_settings.time_limit_ms,
    priority=Priority.NORMAL,
    throws=(SubmissionNotPassingError, SubmissionMismatchError, InvalidJobPayloadError),
)
def analyze_submission(user_id: str, lesson_id: str, submission_id: str) -> dict[str, Any]:
    """Analyze a passing submission.

    Args:
        user_id: Student identifier.
        lesson_id: Lesson identifier.
        submission_id: Submission identifier.

    Returns:
        Summary of the analysis.
    """
    job = parse_job(user_id, lesson_id, submission_id)

    logger.info(
        "analysis_started",
        lesson_id=str(job.lesson_id),
        submission_id=str(job.submission_id),
    )

    outcome = run_async(process_submission_analysis(job))

    summary: dict[str, Any] = {
        "submission_id": str(job.submission_id),
        "skipped": outcome.skipped,
        "action_id": outcome.action_id,
        "action_type": outcome.intervention.action_type.value if outcome.intervention else None,
    }
    logger.info("analysis_completed", **summary)
    return summary


class DramatiqJobEnqueuer(AnalysisJobEnqueuer):
    """Enqueues analysis jobs on the adaptive queue."""

    def enqueue_analysis(self, user_id: UUID, lesson_id: UUID, submission_id: UUID) -> str:
        message = analyze_submission.send(
            user_id=str(user_id),
            lesson_id=str(lesson_id),
            submission_id=str(submission_id),
        )
        return message.message_id


def get_adaptive_actors() -> list[dramatiq.Actor]:
    """Get all adaptive engine actors."""
    return [analyze_submission]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analysis engine: the handler behind AnalyzeSubmission jobs.

One job runs entirely inside the caller's database transaction:

1. Load the submission telemetry. A missing submission fails the job so the
   queue retries it; a failing submission, or one stored for another user or
   lesson than the job names, is rejected outright.
2. Claim the submission. If it was already processed the job is a no-op,
   which makes redelivery safe.
3. Lock the user's profile row, creating the default profile if needed.
   Concurrent jobs for the same user serialize on this lock.
4. Apply the mastery gains for the lesson's concepts in declared order and
   decay frustration.
5. Ask the decision policy for at most one intervention and record it.
6. Persist the profile.

The caller commits on success and rolls everything back on error.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from src.core.adaptive.actions import Intervention
from src.core.adaptive.policy import DecisionContext, DecisionPolicy
from src.core.adaptive.profile import (
    CognitiveProfileState,
    LessonConceptWeight,
    SubmissionTelemetry,
    apply_successful_submission,
)
from src.core.config.settings import AdaptiveSettings
from src.utils.logging import get_logger

logger = get_logger(__name__)


class AnalysisError(Exception):
    """Base exception for submission analysis."""

    pass


class SubmissionNotFoundError(AnalysisError):
    """Raised when the submission referenced by a job does not exist."""

    pass


class SubmissionNotPassingError(AnalysisError):
    """Raised when a job references a submission that did not pass."""

    pass


class SubmissionMismatchError(AnalysisError):
    """Raised when a job's user or lesson differs from the stored submission."""

    pass


@dataclass(frozen=True)
class AnalyzeSubmissionJob:
    """Payload of an AnalyzeSubmission job."""

    user_id: UUID
    lesson_id: UUID
    submission_id: UUID


@dataclass
class AnalysisOutcome:
    """Result of one analysis run.

    Attributes:
        skipped: True when the submission had already been processed.
        profile: Profile after the update (None when skipped).
        intervention: Chosen intervention, if any.
        action_id: Id of the recorded adaptive action, if any.
    """

    skipped: bool
    profile: CognitiveProfileState | None = None
    intervention: Intervention | None = None
    action_id: int | None = None


class AnalysisRepository(ABC):
    """Persistence operations used by the analysis engine.

    All methods act on the same transaction.
    """

    @abstractmethod
    async def get_submission_telemetry(self, submission_id: UUID) -> SubmissionTelemetry | None:
        """Load telemetry for a submission."""

    @abstractmethod
    async def claim_submission(self, user_id: UUID, submission_id: UUID) -> bool:
        """Record the submission as processed; False if it already was."""

    @abstractmethod
    async def lock_profile(
        self, user_id: UUID, default: CognitiveProfileState
    ) -> CognitiveProfileState:
        """Load the user's profile under an exclusive row lock.

        Creates the row from default when the user has no profile yet.
        """

    @abstractmethod
    async def get_lesson_concepts(self, lesson_id: UUID) -> list[LessonConceptWeight]:
        """Concepts of a lesson in declared order."""

    @abstractmethod
    async def save_profile(self, user_id: UUID, profile: CognitiveProfileState) -> None:
        """Replace the stored mastery map and frustration level."""

    @abstractmethod
    async def add_action(self, user_id: UUID, intervention: Intervention) -> int:
        """Record a pending adaptive action and return its id."""


class AnalysisEngine:
    """Updates cognitive profiles and records interventions."""

    def __init__(
        self,
        repository: AnalysisRepository,
        policy: DecisionPolicy,
        settings: AdaptiveSettings,
    ) -> None:
        self._repository = repository
        self._policy = policy
        self._settings = settings

    async def analyze(self, job: AnalyzeSubmissionJob) -> AnalysisOutcome:
        """Run the analysis for one submission.

        Raises:
            SubmissionNotFoundError: If the submission does not exist.
            SubmissionNotPassingError: If the submission did not pass.
            SubmissionMismatchError: If the job names another user or lesson
                than the stored submission.
        """
        telemetry = await self._repository.get_submission_telemetry(job.submission_id)
        if telemetry is None:
            raise SubmissionNotFoundError(f"Submission {job.submission_id} not found")
        if not telemetry.is_correct:
            raise SubmissionNotPassingError(
                f"Submission {job.submission_id} is not a passing attempt"
            )
        if (telemetry.student_id is not None and telemetry.student_id != job.user_id) or (
            telemetry.lesson_id is not None and telemetry.lesson_id != job.lesson_id
        ):
            raise SubmissionMismatchError(
                f"Submission {job.submission_id} does not belong to user {job.user_id} "
                f"and lesson {job.lesson_id}"
            )

        if not await self._repository.claim_submission(job.user_id, job.submission_id):
            logger.info("submission_already_processed", submission_id=str(job.submission_id))
            return AnalysisOutcome(skipped=True)

        profile = await self._repository.lock_profile(
            job.user_id, CognitiveProfileState.default(self._settings)
        )
        lesson_concepts = await self._repository.get_lesson_concepts(job.lesson_id)
        if not lesson_concepts:
            logger.info("lesson_has_no_concepts", lesson_id=str(job.lesson_id))

        apply_successful_submission(profile, lesson_concepts, telemetry, self._settings)

        intervention = await self._policy.decide(
            DecisionContext(
                user_id=job.user_id,
                lesson_id=job.lesson_id,
                telemetry=telemetry,
                lesson_concepts=lesson_concepts,
                profile=profile,
            )
        )

        action_id = None
        if intervention is not None:
            action_id = await self._repository.add_action(job.user_id, intervention)
            logger.info(
                "adaptive_action_created",
                action_id=action_id,
                action_type=intervention.action_type.value,
                related_id=intervention.related_id,
            )

        await self._repository.save_profile(job.user_id, profile)

        logger.info(
            "profile_updated",
            concepts_updated=len(lesson_concepts),
            frustration_level=profile.frustration_level,
        )

        return AnalysisOutcome(
            skipped=False,
            profile=profile,
            intervention=intervention,
            action_id=action_id,
        )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy persistence for the analysis engine."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.adaptive.actions import Intervention
from src.core.adaptive.engine import AnalysisRepository
from src.core.adaptive.profile import (
    CognitiveProfileState,
    LessonConceptWeight,
    SubmissionTelemetry,
)
from src.infrastructure.database.models import (
    AdaptiveAction,
    CognitiveProfile,
    LessonConcept,
    ProcessedSubmission,
    Submission,
)
from src.utils.datetime import utc_now


class AdaptiveRepository(AnalysisRepository):
    """PostgreSQL implementation of AnalysisRepository.

    Operates on the session it is given and never commits; the caller owns
    the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_submission_telemetry(self, submission_id: UUID) -> SubmissionTelemetry | None:
        result = await self._session.execute(
            select(
                Submission.time_to_solve_seconds,
                Submission.code_churn,
                Submission.is_correct,
                Submission.student_id,
                Submission.lesson_id,
            ).where(Submission.id == submission_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return SubmissionTelemetry(
            time_to_solve_seconds=row.time_to_solve_seconds,
            code_churn=row.code_churn,
            is_correct=row.is_correct,
            student_id=row.student_id,
            lesson_id=row.lesson_id,
        )

    async def claim_submission(self, user_id: UUID, submission_id: UUID) -> bool:
        stmt = (
            insert(ProcessedSubmission)
            .values(submission_id=submission_id, user_id=user_id, processed_at=utc_now())
            .on_conflict_do_nothing(index_elements=[ProcessedSubmission.submission_id])
            .returning(ProcessedSubmission.submission_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def lock_profile(
        self, user_id: UUID, default: CognitiveProfileState
    ) -> CognitiveProfileState:
        now = utc_now()
        await self._session.execute(
            insert(CognitiveProfile)
            .values(
                user_id=user_id,
                concept_mastery=default.to_storage(),
                frustration_level=default.frustration_level,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=[CognitiveProfile.user_id])
        )

        result = await self._session.execute(
            select(CognitiveProfile.concept_mastery, CognitiveProfile.frustration_level)
            .where(CognitiveProfile.user_id == user_id)
            .with_for_update()
        )
        row = result.one()
        return CognitiveProfileState.from_storage(row.concept_mastery, row.frustration_level)

    async def get_lesson_concepts(self, lesson_id: UUID) -> list[LessonConceptWeight]:
        result = await self._session.execute(
            select(LessonConcept.concept_id, LessonConcept.mastery_weight)
            .where(LessonConcept.lesson_id == lesson_id)
            .order_by(LessonConcept.position, LessonConcept.concept_id)
        )
        return [
            LessonConceptWeight(concept_id=row.concept_id, mastery_weight=row.mastery_weight)
            for row in result
        ]

    async def save_profile(self, user_id: UUID, profile: CognitiveProfileState) -> None:
        now = utc_now()
        stmt = insert(CognitiveProfile).values(
            user_id=user_id,
            concept_mastery=profile.to_storage(),
            frustration_level=profile.frustration_level,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CognitiveProfile.user_id],
            set_={
                "concept_mastery": stmt.excluded.concept_mastery,
                "frustration_level": stmt.excluded.frustration_level,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)

    async def add_action(self, user_id: UUID, intervention: Intervention) -> int:
        action = AdaptiveAction(
            user_id=user_id,
            action_type=intervention.action_type.value,
            related_id=intervention.related_id,
            is_completed=False,
            created_at=utc_now(),
        )
        self._session.add(action)
        await self._session.flush()
        return action.id

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Decision policy: choose at most one intervention per analysed submission.

Checks run in order and the first one that yields content wins:

1. Excellence. A solve faster than excellence_seconds on a lesson with at
   least one concept asks for a bridging problem from the lesson's first
   concept to its last.
2. Remediation. Every concept in the profile (not only the lesson's) with
   mastery under remedial_threshold is considered in ascending concept id
   order. The first concept for which remedial content can be provided
   becomes the intervention.
3. Otherwise no intervention, which is the common case.

Content collaborators may return None or raise; either way that check
yields nothing and the policy moves on. A failed generation never fails
the surrounding analysis job.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

from src.core.adaptive.actions import GenerateProblem, InjectFragment, Intervention
from src.core.adaptive.profile import (
    CognitiveProfileState,
    LessonConceptWeight,
    SubmissionTelemetry,
)
from src.core.config.settings import AdaptiveSettings
from src.utils.logging import get_logger

logger = get_logger(__name__)


class ContentProvider(ABC):
    """Source of adaptive content referenced by interventions."""

    @abstractmethod
    async def generate_bridging_problem(
        self, source_concept_id: int, target_concept_id: int
    ) -> int | None:
        """Create a challenge bridging two concepts and return its id."""

    @abstractmethod
    async def provide_remedial_fragment(self, lesson_id: UUID, concept_id: int) -> int | None:
        """Select or create remedial content for a concept and return its id."""


@dataclass(frozen=True)
class DecisionContext:
    """Everything the policy may look at for one job.

    profile is the state after this submission's gains were applied.
    """

    user_id: UUID
    lesson_id: UUID
    telemetry: SubmissionTelemetry
    lesson_concepts: Sequence[LessonConceptWeight]
    profile: CognitiveProfileState


class DecisionPolicy:
    """Rule based intervention selection."""

    def __init__(self, content_provider: ContentProvider, settings: AdaptiveSettings) -> None:
        self._content = content_provider
        self._settings = settings

    async def decide(self, context: DecisionContext) -> Intervention | None:
        """Return the intervention for this submission, or None."""
        intervention = await self._check_excellence(context)
        if intervention is not None:
            return intervention
        return await self._check_remediation(context)

    async def _check_excellence(self, context: DecisionContext) -> GenerateProblem | None:
        if context.telemetry.time_to_solve_seconds >= self._settings.excellence_seconds:
            return None
        if not context.lesson_concepts:
            return None

        source = context.lesson_concepts[0].concept_id
        target = context.lesson_concepts[-1].concept_id

        logger.info(
            "excellence_detected",
            user_id=str(context.user_id),
            source_concept_id=source,
            target_concept_id=target,
        )

        try:
            problem_id = await self._content.generate_bridging_problem(source, target)
        except Exception as e:
            logger.warning(
                "bridging_problem_failed",
                source_concept_id=source,
                target_concept_id=target,
                error=str(e),
            )
            return None

        if problem_id is None:
            return None
        return GenerateProblem(problem_id=problem_id)

    async def _check_remediation(self, context: DecisionContext) -> InjectFragment | None:
        for concept_id in context.profile.weak_concepts(self._settings.remedial_threshold):
            logger.info(
                "weak_concept_detected",
                user_id=str(context.user_id),
                concept_id=concept_id,
                mastery=context.profile.mastery_of(concept_id),
            )

            try:
                fragment_id = await self._content.provide_remedial_fragment(
                    context.lesson_id, concept_id
                )
            except Exception as e:
                logger.warning(
                    "remedial_fragment_failed",
                    concept_id=concept_id,
                    error=str(e),
                )
                continue

            if fragment_id is not None:
                return InjectFragment(fragment_id=fragment_id)

        return None

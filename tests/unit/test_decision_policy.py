# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the intervention decision policy."""

from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from src.core.adaptive.actions import ActionType, GenerateProblem, InjectFragment
from src.core.adaptive.policy import ContentProvider, DecisionContext, DecisionPolicy
from src.core.adaptive.profile import (
    CognitiveProfileState,
    LessonConceptWeight,
    SubmissionTelemetry,
)
from src.core.config.settings import AdaptiveSettings


@pytest.fixture
def content_provider() -> AsyncMock:
    """Content provider that produces nothing unless told otherwise."""
    provider = AsyncMock(spec=ContentProvider)
    provider.generate_bridging_problem.return_value = None
    provider.provide_remedial_fragment.return_value = None
    return provider


@pytest.fixture
def policy(content_provider: AsyncMock, adaptive_settings: AdaptiveSettings) -> DecisionPolicy:
    """Policy under test."""
    return DecisionPolicy(content_provider, adaptive_settings)


def make_context(
    user_id: UUID,
    lesson_id: UUID,
    seconds: int,
    lesson_concepts: list[LessonConceptWeight],
    mastery: dict[int, float],
) -> DecisionContext:
    """Build a decision context for a passing submission."""
    return DecisionContext(
        user_id=user_id,
        lesson_id=lesson_id,
        telemetry=SubmissionTelemetry(
            time_to_solve_seconds=seconds, code_churn=10, is_correct=True
        ),
        lesson_concepts=lesson_concepts,
        profile=CognitiveProfileState(concept_mastery=mastery, frustration_level=0.0),
    )


class TestExcellence:
    """Tests for the fast solve check."""

    @pytest.mark.asyncio
    async def test_fast_solve_bridges_first_to_last_concept(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
        lesson_concepts: list[LessonConceptWeight],
    ) -> None:
        """Test that a fast solve asks for a problem from first to last concept."""
        content_provider.generate_bridging_problem.return_value = 77
        context = make_context(user_id, lesson_id, 20, lesson_concepts, {1: 0.9, 2: 0.9})

        result = await policy.decide(context)

        assert result == GenerateProblem(problem_id=77)
        assert result.action_type is ActionType.GENERATE_PROBLEM
        content_provider.generate_bridging_problem.assert_awaited_once_with(1, 2)

    @pytest.mark.asyncio
    async def test_single_concept_lesson_bridges_to_itself(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
    ) -> None:
        """Test that a one concept lesson uses it as source and target."""
        content_provider.generate_bridging_problem.return_value = 5
        context = make_context(user_id, lesson_id, 10, [LessonConceptWeight(4, 40)], {4: 0.6})

        await policy.decide(context)

        content_provider.generate_bridging_problem.assert_awaited_once_with(4, 4)

    @pytest.mark.asyncio
    async def test_threshold_is_strict(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
        lesson_concepts: list[LessonConceptWeight],
    ) -> None:
        """Test that solving in exactly excellence_seconds is not excellent."""
        context = make_context(user_id, lesson_id, 30, lesson_concepts, {1: 0.9, 2: 0.9})

        result = await policy.decide(context)

        assert result is None
        content_provider.generate_bridging_problem.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lesson_without_concepts_skips_excellence(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
    ) -> None:
        """Test that a fast solve on a concept-less lesson generates nothing."""
        context = make_context(user_id, lesson_id, 5, [], {})

        result = await policy.decide(context)

        assert result is None
        content_provider.generate_bridging_problem.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_generation_falls_through_to_remediation(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
        lesson_concepts: list[LessonConceptWeight],
    ) -> None:
        """Test that a failed bridging problem lets remediation run."""
        content_provider.generate_bridging_problem.side_effect = RuntimeError("LLM down")
        content_provider.provide_remedial_fragment.return_value = 12
        context = make_context(user_id, lesson_id, 10, lesson_concepts, {1: 0.9, 8: 0.1})

        result = await policy.decide(context)

        assert result == InjectFragment(fragment_id=12)
        content_provider.provide_remedial_fragment.assert_awaited_once_with(lesson_id, 8)


class TestRemediation:
    """Tests for the weak concept check."""

    @pytest.mark.asyncio
    async def test_first_weak_concept_wins(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
        lesson_concepts: list[LessonConceptWeight],
    ) -> None:
        """Test that the lowest weak concept id is remediated first."""
        content_provider.provide_remedial_fragment.return_value = 3
        context = make_context(
            user_id, lesson_id, 120, lesson_concepts, {9: 0.2, 4: 0.1, 1: 0.8}
        )

        result = await policy.decide(context)

        assert result == InjectFragment(fragment_id=3)
        assert result.related_id == 3
        content_provider.provide_remedial_fragment.assert_awaited_once_with(lesson_id, 4)

    @pytest.mark.asyncio
    async def test_scan_continues_past_missing_content(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
        lesson_concepts: list[LessonConceptWeight],
    ) -> None:
        """Test that None or an error for one concept moves on to the next."""
        content_provider.provide_remedial_fragment.side_effect = [
            None,
            ValueError("bad output"),
            21,
        ]
        context = make_context(
            user_id, lesson_id, 120, lesson_concepts, {2: 0.1, 5: 0.2, 6: 0.3}
        )

        result = await policy.decide(context)

        assert result == InjectFragment(fragment_id=21)
        assert content_provider.provide_remedial_fragment.await_count == 3

    @pytest.mark.asyncio
    async def test_no_weak_concepts_means_no_action(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
        lesson_concepts: list[LessonConceptWeight],
    ) -> None:
        """Test the common case of a competent, unremarkable solve."""
        context = make_context(user_id, lesson_id, 120, lesson_concepts, {1: 0.4, 2: 0.95})

        result = await policy.decide(context)

        assert result is None
        content_provider.provide_remedial_fragment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_remediation_fails(
        self,
        policy: DecisionPolicy,
        content_provider: AsyncMock,
        user_id: UUID,
        lesson_id: UUID,
        lesson_concepts: list[LessonConceptWeight],
    ) -> None:
        """Test that no intervention is chosen when no content can be provided."""
        context = make_context(user_id, lesson_id, 120, lesson_concepts, {2: 0.1, 3: 0.2})

        result = await policy.decide(context)

        assert result is None
        assert content_provider.provide_remedial_fragment.await_count == 2

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the PostgreSQL analysis repository.

Statements are captured from a mocked session and compiled with the
PostgreSQL dialect to check the generated SQL.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from src.core.adaptive.actions import GenerateProblem
from src.core.adaptive.profile import CognitiveProfileState
from src.domains.adaptive.repository import AdaptiveRepository
from src.infrastructure.database.models import AdaptiveAction


def compiled_sql(statement) -> str:
    """Render a statement as PostgreSQL SQL."""
    return str(statement.compile(dialect=postgresql.dialect()))


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create mock async session."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


class TestAdaptiveRepository:
    """Tests for AdaptiveRepository."""

    @pytest.mark.asyncio
    async def test_get_missing_submission_returns_none(self, mock_session: AsyncMock) -> None:
        """Test that an unknown submission yields no telemetry."""
        mock_session.execute.return_value = MagicMock(one_or_none=MagicMock(return_value=None))

        result = await AdaptiveRepository(mock_session).get_submission_telemetry(uuid4())

        assert result is None

    @pytest.mark.asyncio
    async def test_telemetry_carries_owner_and_lesson(self, mock_session: AsyncMock) -> None:
        """Test that the stored student and lesson are loaded with the telemetry."""
        student_id, lesson_id = uuid4(), uuid4()
        row = SimpleNamespace(
            time_to_solve_seconds=30,
            code_churn=4,
            is_correct=True,
            student_id=student_id,
            lesson_id=lesson_id,
        )
        mock_session.execute.return_value = MagicMock(one_or_none=MagicMock(return_value=row))

        result = await AdaptiveRepository(mock_session).get_submission_telemetry(uuid4())

        assert result.student_id == student_id
        assert result.lesson_id == lesson_id
        sql = compiled_sql(mock_session.execute.await_args.args[0])
        assert "submissions.student_id" in sql
        assert "submissions.lesson_id" in sql

    @pytest.mark.asyncio
    async def test_claim_uses_on_conflict_do_nothing(self, mock_session: AsyncMock) -> None:
        """Test that claiming an already processed submission returns False."""
        mock_session.execute.return_value = MagicMock(
            scalar_one_or_none=MagicMock(return_value=None)
        )

        claimed = await AdaptiveRepository(mock_session).claim_submission(uuid4(), uuid4())

        sql = compiled_sql(mock_session.execute.await_args.args[0])
        assert claimed is False
        assert "ON CONFLICT (submission_id) DO NOTHING" in sql
        assert "RETURNING" in sql

    @pytest.mark.asyncio
    async def test_lock_profile_selects_for_update(self, mock_session: AsyncMock) -> None:
        """Test that the profile is created if missing and read under a row lock."""
        row = MagicMock(concept_mastery={"3": 0.2}, frustration_level=0.4)
        mock_session.execute.side_effect = [
            MagicMock(),
            MagicMock(one=MagicMock(return_value=row)),
        ]

        profile = await AdaptiveRepository(mock_session).lock_profile(
            uuid4(), CognitiveProfileState.default()
        )

        insert_sql = compiled_sql(mock_session.execute.await_args_list[0].args[0])
        select_sql = compiled_sql(mock_session.execute.await_args_list[1].args[0])
        assert "ON CONFLICT (user_id) DO NOTHING" in insert_sql
        assert "FOR UPDATE" in select_sql
        assert profile.concept_mastery == {3: 0.2}
        assert profile.frustration_level == 0.4

    @pytest.mark.asyncio
    async def test_lesson_concepts_are_ordered_by_position(self, mock_session: AsyncMock) -> None:
        """Test that lesson concepts come back in declared order."""
        rows = [
            MagicMock(concept_id=4, mastery_weight=30),
            MagicMock(concept_id=2, mastery_weight=70),
        ]
        mock_session.execute.return_value = rows

        concepts = await AdaptiveRepository(mock_session).get_lesson_concepts(uuid4())

        sql = compiled_sql(mock_session.execute.await_args.args[0])
        order_by = sql.split("ORDER BY", 1)[1]
        assert order_by.index("position") < order_by.index("concept_id")
        assert [c.concept_id for c in concepts] == [4, 2]

    @pytest.mark.asyncio
    async def test_save_profile_upserts(self, mock_session: AsyncMock) -> None:
        """Test that saving replaces mastery and frustration on conflict."""
        await AdaptiveRepository(mock_session).save_profile(
            uuid4(), CognitiveProfileState(concept_mastery={1: 0.5})
        )

        sql = compiled_sql(mock_session.execute.await_args.args[0])
        assert "ON CONFLICT (user_id) DO UPDATE" in sql
        assert "concept_mastery = excluded.concept_mastery" in sql

    @pytest.mark.asyncio
    async def test_add_action_flushes_pending_row(self, mock_session: AsyncMock) -> None:
        """Test that a new action is added as pending and flushed."""
        user_id = uuid4()

        await AdaptiveRepository(mock_session).add_action(user_id, GenerateProblem(problem_id=9))

        action = mock_session.add.call_args.args[0]
        assert isinstance(action, AdaptiveAction)
        assert action.user_id == user_id
        assert action.action_type == "GENERATE_PROBLEM"
        assert action.related_id == 9
        assert action.is_completed is False
        mock_session.flush.assert_awaited_once()

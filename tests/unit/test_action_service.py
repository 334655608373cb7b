# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for ActionService.

Tests adaptive action delivery with mocked database and code runner.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.dialects import postgresql

from src.core.execution.client import ExecutionClient, ExecutionResult
from src.domains.adaptive.service import (
    MSG_ACTION_COMPLETED,
    MSG_CODE_ERROR,
    MSG_CORRECT,
    MSG_TRY_AGAIN,
    ActionNotFoundError,
    ActionService,
    ProblemNotFoundError,
)
from src.models.adaptive import FragmentDetails, ProblemDetails


def compiled(statement):
    """Compile a captured statement with the PostgreSQL dialect."""
    return statement.compile(dialect=postgresql.dialect())


def normalized_sql(statement) -> str:
    """Compiled SQL, lower-cased, on a single line."""
    return " ".join(str(compiled(statement)).lower().split())


def assert_scoped_to_pending_owner(statement, user_id: UUID) -> None:
    """Check that a statement only matches the owner's pending actions."""
    where = normalized_sql(statement).split(" where ", 1)[1]
    assert "adaptive_actions.user_id = " in where
    assert "adaptive_actions.is_completed is false" in where
    assert user_id in compiled(statement).params.values()


def scalar_result(value: object) -> MagicMock:
    """Result whose scalar_one_or_none returns value."""
    return MagicMock(scalar_one_or_none=MagicMock(return_value=value))


def make_action(user_id: UUID, action_type: str, related_id: int) -> SimpleNamespace:
    """Create an adaptive action row."""
    return SimpleNamespace(
        id=11,
        user_id=user_id,
        action_type=action_type,
        related_id=related_id,
        is_completed=False,
        created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.get = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_executor() -> AsyncMock:
    """Create mock code runner client."""
    return AsyncMock(spec=ExecutionClient)


@pytest.fixture
def service(mock_db: AsyncMock, mock_executor: AsyncMock) -> ActionService:
    """Create service with mocked dependencies."""
    return ActionService(mock_db, mock_executor)


class TestGetNextAction:
    """Tests for get_next_action."""

    @pytest.mark.asyncio
    async def test_returns_none_when_nothing_pending(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that a user with no pending actions gets None."""
        mock_db.execute.return_value = scalar_result(None)

        assert await service.get_next_action(user_id) is None

    @pytest.mark.asyncio
    async def test_selects_oldest_pending_action_of_user(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that pending actions are delivered oldest first, one at a time."""
        mock_db.execute.return_value = scalar_result(None)

        await service.get_next_action(user_id)

        statement = mock_db.execute.await_args.args[0]
        sql = normalized_sql(statement)
        assert "order by adaptive_actions.created_at, adaptive_actions.id" in sql
        assert " limit " in sql
        assert_scoped_to_pending_owner(statement, user_id)

    @pytest.mark.asyncio
    async def test_fragment_action_includes_content(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that an INJECT_FRAGMENT action carries the fragment."""
        mock_db.execute.return_value = scalar_result(make_action(user_id, "INJECT_FRAGMENT", 5))
        mock_db.get.return_value = SimpleNamespace(
            id=5,
            title="A Quick Refresher on Loops",
            content="A `for` loop repeats...",
            concept_id=2,
            is_dynamic=True,
        )

        result = await service.get_next_action(user_id)

        assert result is not None
        assert result.id == 11
        assert isinstance(result.details, FragmentDetails)
        assert result.details.title == "A Quick Refresher on Loops"

    @pytest.mark.asyncio
    async def test_problem_action_hides_test_cases(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that a GENERATE_PROBLEM action carries the problem without its tests."""
        mock_db.execute.return_value = scalar_result(make_action(user_id, "GENERATE_PROBLEM", 8))
        mock_db.get.return_value = SimpleNamespace(
            id=8,
            prompt="Sum an array.",
            boilerplate_code={"index.js": "function sum(a) {}"},
            test_cases="console.assert(sum([1]) === 1);",
            difficulty=5,
            source_concept_id=1,
            target_concept_id=2,
        )

        result = await service.get_next_action(user_id)

        assert isinstance(result.details, ProblemDetails)
        assert "test_cases" not in result.model_dump()["details"]

    @pytest.mark.asyncio
    async def test_dangling_reference_returns_action_without_details(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that a deleted fragment yields the action with details None."""
        mock_db.execute.return_value = scalar_result(make_action(user_id, "INJECT_FRAGMENT", 5))

        result = await service.get_next_action(user_id)

        assert result is not None
        assert result.details is None


class TestCompleteAction:
    """Tests for complete_action."""

    @pytest.mark.asyncio
    async def test_completes_owned_pending_action(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test completing an action returns the confirmation and commits."""
        mock_db.execute.return_value = scalar_result(11)

        message = await service.complete_action(user_id, 11)

        assert message == MSG_ACTION_COMPLETED
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_or_foreign_action_raises(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that no matching row raises ActionNotFoundError."""
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(ActionNotFoundError, match="do not have permission"):
            await service.complete_action(user_id, 999)

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_action_is_not_found(
        self,
        service: ActionService,
        mock_db: AsyncMock,
    ) -> None:
        """Test that the update only matches pending actions of the caller."""
        other_user = uuid4()
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(ActionNotFoundError):
            await service.complete_action(other_user, 11)

        statement = mock_db.execute.await_args.args[0]
        assert normalized_sql(statement).startswith("update adaptive_actions")
        assert_scoped_to_pending_owner(statement, other_user)
        assert 11 in compiled(statement).params.values()


class TestSolveGeneratedProblem:
    """Tests for solve_generated_problem."""

    @pytest.fixture
    def pending_problem(self, mock_db: AsyncMock) -> None:
        """Pending GENERATE_PROBLEM action referencing problem 8."""
        mock_db.execute.side_effect = [
            scalar_result(8),
            scalar_result("console.assert(sum([1, 2]) === 3, 'sum([1, 2]) should be 3');"),
        ]

    @pytest.mark.asyncio
    async def test_correct_solution(
        self,
        service: ActionService,
        mock_executor: AsyncMock,
        pending_problem: None,
        user_id: UUID,
    ) -> None:
        """Test that a passing run is reported as correct."""
        mock_executor.execute.return_value = ExecutionResult(success=True, output="")

        result = await service.solve_generated_problem(user_id, 11, "const sum = a => 3;")

        assert result.success is True
        assert result.message == MSG_CORRECT
        code, language = mock_executor.execute.await_args.args
        assert code.startswith("const sum = a => 3;\n\nconsole.assert")
        assert language == "javascript"

    @pytest.mark.asyncio
    async def test_assertion_message_is_returned(
        self,
        service: ActionService,
        mock_executor: AsyncMock,
        pending_problem: None,
        user_id: UUID,
    ) -> None:
        """Test that the first failed assertion becomes the message."""
        mock_executor.execute.return_value = ExecutionResult(
            success=False,
            output="Assertion failed: sum([1, 2]) should be 3",
        )

        result = await service.solve_generated_problem(user_id, 11, "const sum = a => 0;")

        assert result.success is False
        assert result.message == "sum([1, 2]) should be 3"

    @pytest.mark.asyncio
    async def test_runtime_error_is_reported(
        self,
        service: ActionService,
        mock_executor: AsyncMock,
        pending_problem: None,
        user_id: UUID,
    ) -> None:
        """Test that the exception raised by the code is reported, not the exit status."""
        mock_executor.execute.return_value = ExecutionResult(
            success=False,
            output=(
                "/home/glot/main.js:3\nsum([1, 2]);\n^\n\n"
                "ReferenceError: sum is not defined\n"
                "    at Object.<anonymous> (/home/glot/main.js:3:1)\n\n"
                "Node.js v18.19.0"
            ),
            error="exit status 1",
        )

        result = await service.solve_generated_problem(user_id, 11, "oops")

        assert result.success is False
        assert result.message == MSG_CODE_ERROR.format(error="ReferenceError: sum is not defined")

    @pytest.mark.asyncio
    async def test_unexplained_failure_asks_to_try_again(
        self,
        service: ActionService,
        mock_executor: AsyncMock,
        pending_problem: None,
        user_id: UUID,
    ) -> None:
        """Test the generic failure message."""
        mock_executor.execute.return_value = ExecutionResult(success=False, output="")

        result = await service.solve_generated_problem(user_id, 11, "x")

        assert result.message == MSG_TRY_AGAIN

    @pytest.mark.asyncio
    async def test_action_not_found(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        mock_executor: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that a missing, completed or foreign action raises."""
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(ActionNotFoundError):
            await service.solve_generated_problem(user_id, 11, "x")

        mock_executor.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_is_scoped_to_owner(
        self,
        service: ActionService,
        mock_db: AsyncMock,
    ) -> None:
        """Test that another user's challenge is looked up as missing."""
        other_user = uuid4()
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(ActionNotFoundError):
            await service.solve_generated_problem(other_user, 11, "x")

        statement = mock_db.execute.await_args.args[0]
        assert_scoped_to_pending_owner(statement, other_user)
        assert "GENERATE_PROBLEM" in compiled(statement).params.values()

    @pytest.mark.asyncio
    async def test_problem_not_found(
        self,
        service: ActionService,
        mock_db: AsyncMock,
        user_id: UUID,
    ) -> None:
        """Test that a deleted problem raises ProblemNotFoundError."""
        mock_db.execute.side_effect = [scalar_result(8), scalar_result(None)]

        with pytest.raises(ProblemNotFoundError):
            await service.solve_generated_problem(uuid4(), 11, "x")

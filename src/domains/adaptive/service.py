# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive action delivery service.

Clients poll for the oldest pending action, render it, and either mark it
complete or, for generated problems, submit a solution that is verified
against the problem's hidden tests. Every operation is scoped to the
owning user: another user's action behaves exactly like a missing one.
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.adaptive.actions import (
    ActionType,
    GenerateProblem,
    InjectFragment,
    intervention_from_row,
)
from src.core.execution.client import (
    ExecutionClient,
    extract_error_message,
    extract_failure_message,
)
from src.infrastructure.database.models import AdaptiveAction, ContentFragment, GeneratedProblem
from src.models.adaptive import (
    AdaptiveActionResponse,
    FragmentDetails,
    ProblemDetails,
    SolveProblemResponse,
)

logger = logging.getLogger(__name__)

MSG_ACTION_COMPLETED = "Action marked as complete."
MSG_CORRECT = "Correct! Well done."
MSG_TRY_AGAIN = "Not quite. Check your logic and try again."
MSG_CODE_ERROR = "Your code has an error: {error}"


class ActionServiceError(Exception):
    """Base exception for action service errors."""

    pass


class ActionNotFoundError(ActionServiceError):
    """Raised when an action does not exist, is not owned by the user, or is done."""

    pass


class ProblemNotFoundError(ActionServiceError):
    """Raised when the problem referenced by an action no longer exists."""

    pass


class ActionService:
    """Service for consuming adaptive actions.

    Attributes:
        _db: Async database session.
        _executor: Remote code runner for problem verification.

    Example:
        >>> service = ActionService(db, ExecutionClient())
        >>> action = await service.get_next_action(user_id)
        >>> await service.complete_action(user_id, action.id)
    """

    def __init__(self, db: AsyncSession, executor: ExecutionClient) -> None:
        self._db = db
        self._executor = executor

    async def get_next_action(self, user_id: UUID) -> AdaptiveActionResponse | None:
        """Get the user's oldest pending action with its content.

        Args:
            user_id: Owning user.

        Returns:
            The action, or None when nothing is pending. details is None when
            the referenced content no longer exists.
        """
        result = await self._db.execute(
            select(AdaptiveAction)
            .where(
                AdaptiveAction.user_id == user_id,
                AdaptiveAction.is_completed.is_(False),
            )
            .order_by(AdaptiveAction.created_at, AdaptiveAction.id)
            .limit(1)
        )
        action = result.scalar_one_or_none()
        if action is None:
            return None

        details: FragmentDetails | ProblemDetails | None = None
        intervention = intervention_from_row(action.action_type, action.related_id)
        if isinstance(intervention, InjectFragment):
            fragment = await self._db.get(ContentFragment, intervention.fragment_id)
            if fragment is not None:
                details = FragmentDetails.model_validate(fragment)
        elif isinstance(intervention, GenerateProblem):
            problem = await self._db.get(GeneratedProblem, intervention.problem_id)
            if problem is not None:
                details = ProblemDetails.model_validate(problem)

        if details is None:
            logger.warning(
                "Action %d references missing %s %d",
                action.id,
                action.action_type,
                action.related_id,
            )

        return AdaptiveActionResponse(
            id=action.id,
            user_id=action.user_id,
            action_type=action.action_type,
            related_id=action.related_id,
            is_completed=action.is_completed,
            created_at=action.created_at,
            details=details,
        )

    async def complete_action(self, user_id: UUID, action_id: int) -> str:
        """Mark a pending action as completed.

        Args:
            user_id: Owning user.
            action_id: Action to complete.

        Returns:
            Confirmation message.

        Raises:
            ActionNotFoundError: If the action does not exist, belongs to
                another user, or is already completed.
        """
        result = await self._db.execute(
            update(AdaptiveAction)
            .where(
                AdaptiveAction.id == action_id,
                AdaptiveAction.user_id == user_id,
                AdaptiveAction.is_completed.is_(False),
            )
            .values(is_completed=True)
            .returning(AdaptiveAction.id)
        )
        if result.scalar_one_or_none() is None:
            raise ActionNotFoundError(
                "Action not found or you do not have permission to complete it."
            )
        await self._db.commit()

        logger.info("Action %d completed by user %s", action_id, user_id)
        return MSG_ACTION_COMPLETED

    async def solve_generated_problem(
        self, user_id: UUID, action_id: int, code: str
    ) -> SolveProblemResponse:
        """Verify a solution to a generated problem against its hidden tests.

        Completion is a separate call; a correct solution does not complete
        the action.

        Args:
            user_id: Owning user.
            action_id: GENERATE_PROBLEM action being attempted.
            code: Student solution.

        Returns:
            Verdict; never raises for problems in the student's code.

        Raises:
            ActionNotFoundError: If the action is missing, not owned by the
                user, already completed, or not a problem action.
            ProblemNotFoundError: If the problem's tests cannot be found.
        """
        result = await self._db.execute(
            select(AdaptiveAction.related_id).where(
                AdaptiveAction.id == action_id,
                AdaptiveAction.user_id == user_id,
                AdaptiveAction.is_completed.is_(False),
                AdaptiveAction.action_type == ActionType.GENERATE_PROBLEM.value,
            )
        )
        problem_id = result.scalar_one_or_none()
        if problem_id is None:
            raise ActionNotFoundError("Challenge not found or already completed.")

        result = await self._db.execute(
            select(GeneratedProblem.test_cases).where(GeneratedProblem.id == problem_id)
        )
        test_cases = result.scalar_one_or_none()
        if test_cases is None:
            raise ProblemNotFoundError("Test cases for this challenge could not be found.")

        execution = await self._executor.execute(f"{code}\n\n{test_cases}", "javascript")

        if execution.success:
            return SolveProblemResponse(success=True, message=MSG_CORRECT)

        failure = extract_failure_message(execution.output)
        if failure:
            return SolveProblemResponse(success=False, message=failure)
        error = extract_error_message(execution)
        if error:
            return SolveProblemResponse(
                success=False,
                message=MSG_CODE_ERROR.format(error=error),
            )
        return SolveProblemResponse(success=False, message=MSG_TRY_AGAIN)

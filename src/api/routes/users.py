# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive action endpoints for the current user.

- GET /actions/next - Get the oldest pending action
- POST /actions/{action_id}/complete - Mark an action as done
- POST /actions/solve-problem/{action_id} - Verify a generated problem solution
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from src.api.dependencies import Actions, AuthenticatedUser
from src.api.middleware.rate_limit import RATE_LIMIT_EXECUTION, limiter
from src.domains.adaptive.service import ActionNotFoundError, ProblemNotFoundError
from src.models.adaptive import (
    AdaptiveActionResponse,
    CompleteActionResponse,
    SolveProblemRequest,
    SolveProblemResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/actions/next",
    response_model=AdaptiveActionResponse | None,
    summary="Get next adaptive action",
    description="Return the oldest pending action with its content, or null.",
)
async def get_next_action(
    current_user: AuthenticatedUser,
    service: Actions,
) -> AdaptiveActionResponse | None:
    """Get the current user's next pending action."""
    return await service.get_next_action(current_user.id)


@router.post(
    "/actions/{action_id}/complete",
    response_model=CompleteActionResponse,
    summary="Complete an action",
)
async def complete_action(
    action_id: int,
    current_user: AuthenticatedUser,
    service: Actions,
) -> CompleteActionResponse:
    """Mark one of the current user's pending actions as completed.

    Raises:
        HTTPException: If the action is missing, not owned or already done.
    """
    try:
        message = await service.complete_action(current_user.id, action_id)
    except ActionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    return CompleteActionResponse(message=message)


@router.post(
    "/actions/solve-problem/{action_id}",
    response_model=SolveProblemResponse,
    summary="Submit a solution to a generated problem",
    description="Runs the solution against the problem's hidden tests. "
    "Completing the action is a separate call.",
)
@limiter.limit(RATE_LIMIT_EXECUTION)
async def solve_problem(
    request: Request,
    action_id: int,
    data: SolveProblemRequest,
    current_user: AuthenticatedUser,
    service: Actions,
) -> SolveProblemResponse:
    """Verify the current user's solution to a generated problem.

    Raises:
        HTTPException: If the action or its problem cannot be found.
    """
    logger.info("Solve attempt: user=%s, action=%d", current_user.id, action_id)

    try:
        return await service.solve_generated_problem(current_user.id, action_id, data.code)
    except (ActionNotFoundError, ProblemNotFoundError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

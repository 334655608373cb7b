# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Dependencies are used to:
- Get database sessions
- Get the authenticated user
- Get service instances

Example:
    @router.get("/actions/next")
    async def get_next_action(
        user: AuthenticatedUser,
        service: ActionService = Depends(get_action_service),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.core.execution.client import ExecutionClient
from src.domains.adaptive.service import ActionService
from src.domains.submission.service import AnalysisJobEnqueuer, SubmissionService
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session, committed when the request succeeds.

    Yields:
        AsyncSession for the request.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# =========================================================================
# Service Dependencies
# =========================================================================


def get_execution_client() -> ExecutionClient:
    """Get a code runner client."""
    return ExecutionClient(get_settings().execution)


def get_job_enqueuer() -> AnalysisJobEnqueuer:
    """Get the analysis job enqueuer backed by Dramatiq."""
    from src.infrastructure.background.tasks.adaptive import DramatiqJobEnqueuer

    return DramatiqJobEnqueuer()


def get_action_service(
    db: AsyncSession = Depends(get_db),
    executor: ExecutionClient = Depends(get_execution_client),
) -> ActionService:
    """Get the adaptive action service."""
    return ActionService(db, executor)


def get_submission_service(
    db: AsyncSession = Depends(get_db),
    executor: ExecutionClient = Depends(get_execution_client),
    enqueuer: AnalysisJobEnqueuer = Depends(get_job_enqueuer),
) -> SubmissionService:
    """Get the lesson submission service."""
    return SubmissionService(db, executor, enqueuer)


# Type aliases for cleaner endpoint signatures
DB = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
Actions = Annotated[ActionService, Depends(get_action_service)]
Submissions = Annotated[SubmissionService, Depends(get_submission_service)]

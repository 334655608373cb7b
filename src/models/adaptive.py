# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API models for adaptive action delivery."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FragmentDetails(BaseModel):
    """Remedial content attached to an INJECT_FRAGMENT action."""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["fragment"] = "fragment"
    id: int
    title: str
    content: str
    concept_id: int
    is_dynamic: bool


class ProblemDetails(BaseModel):
    """Challenge attached to a GENERATE_PROBLEM action.

    The hidden test cases are never sent to the client.
    """

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["problem"] = "problem"
    id: int
    prompt: str
    boilerplate_code: dict[str, Any]
    difficulty: int
    source_concept_id: int | None = None
    target_concept_id: int | None = None


class AdaptiveActionResponse(BaseModel):
    """A pending adaptive action with the content it references."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: UUID
    action_type: Literal["INJECT_FRAGMENT", "GENERATE_PROBLEM"]
    related_id: int
    is_completed: bool
    created_at: datetime
    details: FragmentDetails | ProblemDetails | None = Field(
        default=None,
        description="Referenced content, or null if it no longer exists",
    )


class CompleteActionResponse(BaseModel):
    """Confirmation that an action was completed."""

    message: str


class SolveProblemRequest(BaseModel):
    """Student solution for a generated problem."""

    code: str = Field(..., min_length=1, max_length=100_000)


class SolveProblemResponse(BaseModel):
    """Verdict on a generated problem attempt."""

    success: bool
    message: str

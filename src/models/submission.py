# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API models for lesson submissions."""

from uuid import UUID

from pydantic import BaseModel, Field


class SubmitSolutionRequest(BaseModel):
    """A solution attempt with the telemetry the client recorded."""

    code: str = Field(..., min_length=1, max_length=100_000)
    time_to_solve_seconds: int = Field(default=0, ge=0)
    code_churn: int = Field(default=0, ge=0)


class SubmitSolutionResponse(BaseModel):
    """Grading result of a submission."""

    success: bool
    message: str
    submission_id: UUID
    output: str = ""

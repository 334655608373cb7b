# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request and response models for the HTTP API."""

from src.models.adaptive import (
    AdaptiveActionResponse,
    CompleteActionResponse,
    FragmentDetails,
    ProblemDetails,
    SolveProblemRequest,
    SolveProblemResponse,
)
from src.models.submission import SubmitSolutionRequest, SubmitSolutionResponse

__all__ = [
    "AdaptiveActionResponse",
    "CompleteActionResponse",
    "FragmentDetails",
    "ProblemDetails",
    "SolveProblemRequest",
    "SolveProblemResponse",
    "SubmitSolutionRequest",
    "SubmitSolutionResponse",
]

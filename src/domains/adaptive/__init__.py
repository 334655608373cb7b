# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive action domain: persistence and delivery."""

from src.domains.adaptive.repository import AdaptiveRepository
from src.domains.adaptive.service import (
    ActionNotFoundError,
    ActionService,
    ActionServiceError,
    ProblemNotFoundError,
)

__all__ = [
    "AdaptiveRepository",
    "ActionNotFoundError",
    "ActionService",
    "ActionServiceError",
    "ProblemNotFoundError",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task actors.

Usage:
    from src.infrastructure.background.tasks import analyze_submission

    analyze_submission.send(user_id="...", lesson_id="...", submission_id="...")

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 2 --threads 4
"""

from src.infrastructure.background.tasks.adaptive import (
    DramatiqJobEnqueuer,
    analyze_submission,
    get_adaptive_actors,
)
from src.infrastructure.background.tasks.base import run_async

__all__ = [
    "analyze_submission",
    "DramatiqJobEnqueuer",
    "get_adaptive_actors",
    "get_all_actors",
    "run_async",
]


def get_all_actors() -> list:
    """Get all registered actors for worker registration."""
    return [*get_adaptive_actors()]

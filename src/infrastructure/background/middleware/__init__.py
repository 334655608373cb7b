# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom Dramatiq middleware.

- JobContextMiddleware: job identity in the structured logging context
- DeadLetterMiddleware: failed attempt and dead-letter logging
"""

from src.infrastructure.background.middleware.dead_letter import DeadLetterMiddleware
from src.infrastructure.background.middleware.job_context import JobContextMiddleware

__all__ = [
    "DeadLetterMiddleware",
    "JobContextMiddleware",
]

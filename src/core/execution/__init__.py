# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remote code execution."""

from src.core.execution.client import (
    SUPPORTED_LANGUAGES,
    ExecutionClient,
    ExecutionResult,
    UnsupportedLanguageError,
    extract_failure_message,
    has_assertion_failure,
)

__all__ = [
    "SUPPORTED_LANGUAGES",
    "ExecutionClient",
    "ExecutionResult",
    "UnsupportedLanguageError",
    "extract_failure_message",
    "has_assertion_failure",
]

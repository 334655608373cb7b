# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

Background tasks run on Dramatiq's in-memory StubBroker during tests.
"""

import os

# Must be set before any module imports the broker
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")

from uuid import UUID, uuid4

import pytest

from src.core.adaptive.profile import LessonConceptWeight, SubmissionTelemetry
from src.core.config.settings import AdaptiveSettings


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def adaptive_settings() -> AdaptiveSettings:
    """Default profile update and decision policy constants."""
    return AdaptiveSettings()


@pytest.fixture
def user_id() -> UUID:
    """A student id."""
    return uuid4()


@pytest.fixture
def lesson_id() -> UUID:
    """A lesson id."""
    return uuid4()


@pytest.fixture
def lesson_concepts() -> list[LessonConceptWeight]:
    """Concepts of a lesson in declared order."""
    return [
        LessonConceptWeight(concept_id=1, mastery_weight=50),
        LessonConceptWeight(concept_id=2, mastery_weight=20),
    ]


@pytest.fixture
def slow_telemetry() -> SubmissionTelemetry:
    """A passing submission that earns neither the speed nor the churn bonus."""
    return SubmissionTelemetry(time_to_solve_seconds=120, code_churn=80, is_correct=True)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cognitive profile state and the mastery update rule.

A successful submission raises mastery for every concept the lesson
teaches. Each concept gains

    base_gain + mastery_weight / 100
        + fast_solve_bonus   (time_to_solve_seconds < fast_solve_seconds)
        + low_churn_bonus    (code_churn < low_churn_lines)

and the result is clamped to [0, 1]. Frustration decays by a fixed amount
and never drops below 0.

Example:
    >>> profile = CognitiveProfileState.default()
    >>> apply_successful_submission(
    ...     profile,
    ...     [LessonConceptWeight(concept_id=1, mastery_weight=50)],
    ...     SubmissionTelemetry(time_to_solve_seconds=45, code_churn=10, is_correct=True),
    ...     AdaptiveSettings(),
    ... )
    >>> profile.mastery_of(1)
    0.58
"""

from dataclasses import dataclass, field
from typing import Any, Iterable
from uuid import UUID

from src.core.config.settings import AdaptiveSettings


def clamp_unit(value: float) -> float:
    """Clamp a value to the closed unit interval."""
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class LessonConceptWeight:
    """A concept taught by a lesson, with its weight (0-100)."""

    concept_id: int
    mastery_weight: int


@dataclass(frozen=True)
class SubmissionTelemetry:
    """Behavioural signals recorded with a submission.

    student_id and lesson_id identify the stored submission and are set
    whenever the telemetry is loaded from the database.
    """

    time_to_solve_seconds: int
    code_churn: int
    is_correct: bool
    student_id: UUID | None = None
    lesson_id: UUID | None = None


@dataclass
class CognitiveProfileState:
    """In-memory view of a user's cognitive profile.

    Attributes:
        concept_mastery: Concept id to mastery in [0, 1].
        frustration_level: Struggle estimate in [0, 1].
    """

    concept_mastery: dict[int, float] = field(default_factory=dict)
    frustration_level: float = 0.1

    @classmethod
    def default(cls, settings: AdaptiveSettings | None = None) -> "CognitiveProfileState":
        """Profile assigned to a user on their first analysed submission."""
        frustration = settings.default_frustration if settings else 0.1
        return cls(concept_mastery={}, frustration_level=frustration)

    @classmethod
    def from_storage(
        cls, concept_mastery: dict[str, Any] | None, frustration_level: float | None
    ) -> "CognitiveProfileState":
        """Build state from a stored row.

        JSON object keys are strings; they are converted back to concept ids.
        Values are clamped in case the row was written by an older process.
        """
        mastery = {
            int(concept_id): clamp_unit(float(value))
            for concept_id, value in (concept_mastery or {}).items()
        }
        frustration = 0.1 if frustration_level is None else clamp_unit(frustration_level)
        return cls(concept_mastery=mastery, frustration_level=frustration)

    def to_storage(self) -> dict[str, float]:
        """Serialize the mastery map with string keys, ordered by concept id."""
        return {
            str(concept_id): value
            for concept_id, value in sorted(self.concept_mastery.items())
        }

    def mastery_of(self, concept_id: int) -> float:
        """Mastery of a concept; absent concepts have mastery 0."""
        return self.concept_mastery.get(concept_id, 0.0)

    def weak_concepts(self, threshold: float) -> list[int]:
        """Concept ids below the threshold, in ascending id order.

        Only concepts present in the map are considered.
        """
        return [
            concept_id
            for concept_id, value in sorted(self.concept_mastery.items())
            if value < threshold
        ]


def mastery_gain(
    weight: LessonConceptWeight,
    telemetry: SubmissionTelemetry,
    settings: AdaptiveSettings,
) -> float:
    """Mastery gained on one concept from one successful submission."""
    gain = settings.base_gain + weight.mastery_weight / 100.0
    if telemetry.time_to_solve_seconds < settings.fast_solve_seconds:
        gain += settings.fast_solve_bonus
    if telemetry.code_churn < settings.low_churn_lines:
        gain += settings.low_churn_bonus
    return gain


def apply_successful_submission(
    profile: CognitiveProfileState,
    lesson_concepts: Iterable[LessonConceptWeight],
    telemetry: SubmissionTelemetry,
    settings: AdaptiveSettings,
) -> CognitiveProfileState:
    """Update a profile in place for a passing submission and return it."""
    for weight in lesson_concepts:
        current = profile.mastery_of(weight.concept_id)
        updated = clamp_unit(current + mastery_gain(weight, telemetry, settings))
        # Rounded to keep stored JSON free of float noise like 0.58000000001
        profile.concept_mastery[weight.concept_id] = round(updated, 6)

    profile.frustration_level = round(
        clamp_unit(profile.frustration_level - settings.frustration_decay), 6
    )
    return profile

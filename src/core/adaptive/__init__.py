# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive path engine core.

- profile: Cognitive profile state and the mastery update rule
- actions: Intervention types
- policy: Intervention selection
- engine: Per-submission analysis orchestration
"""

from src.core.adaptive.actions import (
    ActionType,
    GenerateProblem,
    InjectFragment,
    Intervention,
    intervention_from_row,
)
from src.core.adaptive.engine import (
    AnalysisEngine,
    AnalysisError,
    AnalysisOutcome,
    AnalysisRepository,
    AnalyzeSubmissionJob,
    SubmissionMismatchError,
    SubmissionNotFoundError,
    SubmissionNotPassingError,
)
from src.core.adaptive.policy import ContentProvider, DecisionContext, DecisionPolicy
from src.core.adaptive.profile import (
    CognitiveProfileState,
    LessonConceptWeight,
    SubmissionTelemetry,
    apply_successful_submission,
    clamp_unit,
    mastery_gain,
)

__all__ = [
    "ActionType",
    "GenerateProblem",
    "InjectFragment",
    "Intervention",
    "intervention_from_row",
    "AnalysisEngine",
    "AnalysisError",
    "AnalysisOutcome",
    "AnalysisRepository",
    "AnalyzeSubmissionJob",
    "SubmissionMismatchError",
    "SubmissionNotFoundError",
    "SubmissionNotPassingError",
    "ContentProvider",
    "DecisionContext",
    "DecisionPolicy",
    "CognitiveProfileState",
    "LessonConceptWeight",
    "SubmissionTelemetry",
    "apply_successful_submission",
    "clamp_unit",
    "mastery_gain",
]

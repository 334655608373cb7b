# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive interventions.

An intervention is stored as (action_type, related_id). In code it is a
tagged union so the referenced entity is always explicit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ActionType(str, Enum):
    """Kinds of intervention the decision policy can emit."""

    INJECT_FRAGMENT = "INJECT_FRAGMENT"
    GENERATE_PROBLEM = "GENERATE_PROBLEM"


@dataclass(frozen=True)
class InjectFragment:
    """Show remedial content: related_id is a content fragment id."""

    fragment_id: int

    @property
    def action_type(self) -> ActionType:
        return ActionType.INJECT_FRAGMENT

    @property
    def related_id(self) -> int:
        return self.fragment_id


@dataclass(frozen=True)
class GenerateProblem:
    """Offer a bridging challenge: related_id is a generated problem id."""

    problem_id: int

    @property
    def action_type(self) -> ActionType:
        return ActionType.GENERATE_PROBLEM

    @property
    def related_id(self) -> int:
        return self.problem_id


Intervention = Union[InjectFragment, GenerateProblem]


def intervention_from_row(action_type: str, related_id: int) -> Intervention:
    """Resolve a stored (action_type, related_id) pair.

    Raises:
        ValueError: If the action type is unknown.
    """
    kind = ActionType(action_type)
    if kind is ActionType.INJECT_FRAGMENT:
        return InjectFragment(fragment_id=related_id)
    return GenerateProblem(problem_id=related_id)

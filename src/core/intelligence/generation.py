# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive content generation.

Provides the content behind interventions:

- Bridging problems: a short JavaScript challenge that takes a student from
  a concept they handle well to a more advanced one. Generated by the LLM
  and stored in generated_problems.
- Remedial fragments: a short refresher on a weak concept. An authored
  (static) fragment is reused when one exists; otherwise a dynamic one is
  generated and stored in content_fragments.

Every failure (missing rows, LLM errors, malformed output) results in None.
Inserts run inside a SAVEPOINT so a failed write leaves the caller's
transaction usable.
"""

import logging
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.adaptive.policy import ContentProvider
from src.core.intelligence.llm.client import LLMClient, LLMError
from src.infrastructure.database.models import (
    Concept,
    ContentFragment,
    GeneratedProblem,
    Lesson,
)

logger = logging.getLogger(__name__)

BRIDGING_PROBLEM_DIFFICULTY = 5

BRIDGING_PROBLEM_PROMPT = """\
You are an expert computer science curriculum designer. Generate a single,
self-contained micro-problem for a learning platform. It must be solvable in
under 10 minutes and help a student bridge a specific knowledge gap. The
problem MUST be in JavaScript.

The student is comfortable with the concept of "{source}".
The student needs practice with the concept of "{target}".

Respond with ONLY a single raw JSON object with exactly this structure:
{{
  "prompt": "A clear, concise problem description in Markdown.",
  "boilerplate_code": {{"index.js": "Starting JavaScript code for the student."}},
  "test_cases": "JavaScript code with one or more console.assert() statements \
that verify the solution. It is appended to the student's code."
}}
"""

REMEDIAL_FRAGMENT_PROMPT = """\
You are an expert, encouraging computer science tutor. A student has just
completed a lesson, but their performance indicates they struggled. Write a
short custom refresher that solidifies their understanding of a key concept.

Lesson Title: "{lesson_title}"
Lesson Objective: "{lesson_objective}"
Weak concept: "{concept}" (Category: {category})

Requirements:
1. Explain "{concept}" as it applies to the lesson they just finished.
2. Use Markdown. Include a small code example if it helps.
3. Keep a positive, reinforcing tone.
4. Keep it to 3-5 sentences.

Respond with ONLY a single raw JSON object:
{{"title": "A Quick Refresher on {concept}", "content": "Markdown refresher."}}
"""


class BridgingProblemPayload(BaseModel):
    """LLM output for a bridging problem."""

    prompt: str = Field(min_length=1)
    boilerplate_code: dict[str, str] = Field(min_length=1)
    test_cases: str = Field(min_length=1)

    @field_validator("boilerplate_code", mode="before")
    @classmethod
    def wrap_plain_code(cls, value: Any) -> Any:
        """Accept a bare code string as the index.js file."""
        if isinstance(value, str):
            return {"index.js": value}
        return value


class RemedialFragmentPayload(BaseModel):
    """LLM output for a remedial fragment."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)


class ContentGenerationService(ContentProvider):
    """LLM backed content provider bound to one database session."""

    def __init__(self, session: AsyncSession, llm_client: LLMClient) -> None:
        self._session = session
        self._llm = llm_client

    async def generate_bridging_problem(
        self, source_concept_id: int, target_concept_id: int
    ) -> int | None:
        """Generate and store a problem bridging two concepts.

        Returns:
            The generated problem id, or None if generation failed.
        """
        source = await self._session.get(Concept, source_concept_id)
        target = await self._session.get(Concept, target_concept_id)
        if source is None or target is None:
            logger.warning(
                "Cannot bridge concepts %s -> %s: concept not found",
                source_concept_id,
                target_concept_id,
            )
            return None

        logger.info("Generating problem to bridge '%s' to '%s'", source.name, target.name)

        try:
            data = await self._llm.complete_json(
                BRIDGING_PROBLEM_PROMPT.format(source=source.name, target=target.name)
            )
            payload = BridgingProblemPayload.model_validate(data)
        except (LLMError, ValidationError) as e:
            logger.error("Bridging problem generation failed: %s", e)
            return None

        problem = GeneratedProblem(
            prompt=payload.prompt,
            boilerplate_code=payload.boilerplate_code,
            test_cases=payload.test_cases,
            difficulty=BRIDGING_PROBLEM_DIFFICULTY,
            source_concept_id=source.id,
            target_concept_id=target.id,
        )
        if not await self._insert(problem):
            return None

        logger.info("Saved generated problem %d", problem.id)
        return problem.id

    async def provide_remedial_fragment(self, lesson_id: UUID, concept_id: int) -> int | None:
        """Select an authored fragment for the concept or generate one.

        Returns:
            A content fragment id, or None if none could be provided.
        """
        result = await self._session.execute(
            select(ContentFragment.id)
            .where(
                ContentFragment.concept_id == concept_id,
                ContentFragment.is_dynamic.is_(False),
            )
            .order_by(ContentFragment.created_at, ContentFragment.id)
            .limit(1)
        )
        existing_id = result.scalar_one_or_none()
        if existing_id is not None:
            return existing_id

        return await self._generate_remedial_fragment(lesson_id, concept_id)

    async def _generate_remedial_fragment(self, lesson_id: UUID, concept_id: int) -> int | None:
        lesson = await self._session.get(Lesson, lesson_id)
        concept = await self._session.get(Concept, concept_id)
        if lesson is None or concept is None:
            logger.warning(
                "Cannot generate refresher: lesson %s or concept %s not found",
                lesson_id,
                concept_id,
            )
            return None
        if not lesson.objective:
            logger.info("Lesson %s has no objective, skipping refresher", lesson_id)
            return None

        logger.info("Generating dynamic refresher for concept '%s'", concept.name)

        try:
            data = await self._llm.complete_json(
                REMEDIAL_FRAGMENT_PROMPT.format(
                    lesson_title=lesson.title,
                    lesson_objective=lesson.objective,
                    concept=concept.name,
                    category=concept.category or "General",
                )
            )
            payload = RemedialFragmentPayload.model_validate(data)
        except (LLMError, ValidationError) as e:
            logger.error("Refresher generation failed: %s", e)
            return None

        fragment = ContentFragment(
            title=payload.title,
            content=payload.content,
            concept_id=concept.id,
            is_dynamic=True,
        )
        if not await self._insert(fragment):
            return None

        logger.info("Saved dynamic fragment %d", fragment.id)
        return fragment.id

    async def _insert(self, entity: GeneratedProblem | ContentFragment) -> bool:
        try:
            async with self._session.begin_nested():
                self._session.add(entity)
                await self._session.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to store generated %s: %s", type(entity).__name__, e)
            return False
        return True

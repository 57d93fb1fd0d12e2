"""
Bundle assignment engine for one assessment.

Ties the provider, randomizer, validator and store together:

    engine = BundleAssignmentEngine(session, assessment_id, rng=make_rng(seed))
    candidate = engine.randomize()
    report = engine.validate(candidate)
    if report.passed:
        engine.save(candidate)

The engine never retries on its own; callers decide how many candidates to
draw and which one to keep (see `pick_best`).
"""
from __future__ import annotations

import random

from loguru import logger
from sqlalchemy.orm import Session

from .assignment_set import AssignmentSet
from .provider import AssessmentProvider, SqlAssessmentProvider
from .randomizer import randomize
from .results import ValidationReport
from .store import AssignmentStore
from .validator import ValidationContext, validate


class BundleAssignmentEngine:
    def __init__(
        self,
        session: Session,
        assessment_id: int,
        provider: AssessmentProvider | None = None,
        rng: random.Random | None = None,
    ):
        self.assessment_id = assessment_id
        self.provider = provider or SqlAssessmentProvider(session)
        self.store = AssignmentStore(session, self.provider)
        self.rng = rng or random.Random()
        self.students = self.provider.student_ids(assessment_id)
        self.group_bundles = self.provider.group_bundles(assessment_id)

    def load(self) -> AssignmentSet:
        return self.store.load(self.assessment_id)

    def randomize(self) -> AssignmentSet:
        return randomize(self.students, self.group_bundles, self.rng)

    def capture_context(self) -> ValidationContext:
        return ValidationContext.capture(self.provider, self.assessment_id)

    def validate(
        self, assignment_set: AssignmentSet, context: ValidationContext | None = None
    ) -> ValidationReport:
        """Validate a candidate; pass `context` to reuse one snapshot across candidates."""
        return validate(assignment_set, context or self.capture_context())

    def save(self, assignment_set: AssignmentSet) -> int:
        written = self.store.save(self.assessment_id, assignment_set)
        logger.debug(f"Assessment {self.assessment_id}: {written} assignments persisted")
        return written

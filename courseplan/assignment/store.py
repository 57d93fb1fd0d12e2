"""
Load/save boundary between assignment rows and AssignmentSet.

Only rows without a submission are managed here; rows attached to a
submission are history and are never touched.
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy import Select, delete, insert, select
from sqlalchemy.orm import Session

from courseplan.db.models import Assessment, QuestionBundleAssignment
from courseplan.db.transactions import atomic

from .assignment_set import AssignmentSet
from .errors import InconsistentAssignmentData
from .provider import AssessmentProvider, SqlAssessmentProvider


def lock_assessment(assessment_id: int) -> Select:
    """Row lock on the assessment; concurrent saves of it queue behind one another."""
    return select(Assessment.id).where(Assessment.id == assessment_id).with_for_update()


class AssignmentStore:
    def __init__(self, session: Session, provider: AssessmentProvider | None = None):
        self.session = session
        self.provider = provider or SqlAssessmentProvider(session)

    def load(self, assessment_id: int) -> AssignmentSet:
        """Fold every non-submitted assignment row into a fresh AssignmentSet."""
        assignment_set = AssignmentSet(
            self.provider.student_ids(assessment_id),
            self.provider.group_bundles(assessment_id),
        )
        for student, bundle in self.provider.non_submitted_assignments(assessment_id):
            assignment_set.add_assignment(student, bundle)
        return assignment_set

    def save(self, assessment_id: int, assignment_set: AssignmentSet) -> int:
        """
        Replace the non-submitted assignments of an assessment.

        Deletion and insertion run in one transaction so a reader never sees a
        partially cleared table; a failure rolls both back. The assessment row
        is locked first, so a second save of the same assessment waits and then
        deletes what the first one inserted (last committer wins). Extraneous
        bundles are never persisted.

        Returns:
            Number of assignment rows written
        """
        rows = [
            {"user_id": student, "assessment_id": assessment_id, "bundle_id": bundle}
            for student, _group, bundle in assignment_set.iter_primary()
        ]
        with atomic(self.session):
            if self.session.scalar(lock_assessment(assessment_id)) is None:
                raise InconsistentAssignmentData(f"Assessment {assessment_id} does not exist")
            deleted = self.session.execute(
                delete(QuestionBundleAssignment)
                .where(
                    QuestionBundleAssignment.assessment_id == assessment_id,
                    QuestionBundleAssignment.submission_id.is_(None),
                )
                .execution_options(synchronize_session=False)
            ).rowcount
            if rows:
                self.session.execute(insert(QuestionBundleAssignment), rows)
        logger.info(
            f"Saved bundle assignments for assessment {assessment_id}: "
            f"{deleted} replaced, {len(rows)} written"
        )
        return len(rows)

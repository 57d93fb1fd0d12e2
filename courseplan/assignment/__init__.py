"""
Question Bundle Assignment Engine.

Components:
- AssignmentSet: in-memory student -> group -> bundle table with an extraneous bucket
- randomize: draws a candidate AssignmentSet from an injectable random source
- validate: runs the structural and fairness checks into a ValidationReport
- AssignmentStore: atomic load/save of non-submitted assignment rows
- BundleAssignmentEngine: per-assessment orchestration of the above
"""
from courseplan.assignment.assignment_set import NO_GROUP, AssignmentSet, StudentAssignment
from courseplan.assignment.engine import BundleAssignmentEngine
from courseplan.assignment.errors import AssignmentEngineError, InconsistentAssignmentData
from courseplan.assignment.provider import AssessmentProvider, SqlAssessmentProvider
from courseplan.assignment.randomizer import create_seed, make_rng, randomize
from courseplan.assignment.results import (
    EmptyGroupsInfo,
    OffendingStudentsInfo,
    OverlappingQuestionsInfo,
    Reason,
    Severity,
    ValidationReport,
    ValidationResult,
    to_sentence,
)
from courseplan.assignment.store import AssignmentStore
from courseplan.assignment.validator import (
    NO_EMPTY_GROUPS,
    NO_OVERLAPPING_QUESTIONS,
    NO_REPEAT_BUNDLES,
    ONE_BUNDLE_ASSIGNED,
    ValidationContext,
    pick_best,
    validate,
)

__all__ = [
    # Engine
    "BundleAssignmentEngine",
    "AssignmentStore",
    "AssessmentProvider",
    "SqlAssessmentProvider",
    # Assignment sets
    "AssignmentSet",
    "StudentAssignment",
    "NO_GROUP",
    # Randomization
    "randomize",
    "make_rng",
    "create_seed",
    # Validation
    "validate",
    "pick_best",
    "ValidationContext",
    "ValidationReport",
    "ValidationResult",
    "Severity",
    "Reason",
    "OverlappingQuestionsInfo",
    "EmptyGroupsInfo",
    "OffendingStudentsInfo",
    "to_sentence",
    "NO_OVERLAPPING_QUESTIONS",
    "NO_EMPTY_GROUPS",
    "ONE_BUNDLE_ASSIGNED",
    "NO_REPEAT_BUNDLES",
    # Errors
    "AssignmentEngineError",
    "InconsistentAssignmentData",
]

"""Exceptions raised by the bundle assignment engine."""


class AssignmentEngineError(Exception):
    """Base class for bundle assignment errors."""
    pass


class InconsistentAssignmentData(AssignmentEngineError):
    """
    Raised when the assessment data contradicts itself.

    Examples are an assignment row referencing a bundle that belongs to no
    group of the assessment, or a row for a student who is not enrolled.
    These abort the operation instead of producing a validation result.
    """

    def __init__(self, message: str, *, student_id: int | None = None, bundle_id: int | None = None):
        super().__init__(message)
        self.student_id = student_id
        self.bundle_id = bundle_id

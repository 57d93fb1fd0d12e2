"""
In-memory representation of an assessment's bundle assignment table.

Computations on a full table of assignments are expensive to run against the
database, so the engine works on an AssignmentSet: a nested mapping of
student -> group -> bundle, with an extraneous list per student holding every
bundle that arrived for a group the student already had.

Everything is identified by integer IDs. The constructing code is responsible
for translating rows into IDs.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field

from .errors import InconsistentAssignmentData

# Offending cells of extraneous bundles use this in place of a group ID
NO_GROUP = None


@dataclass
class StudentAssignment:
    """Bundles assigned to one student: at most one per group, overflow in `extraneous`."""

    bundles: dict[int, int] = field(default_factory=dict)
    extraneous: list[int] = field(default_factory=list)


class AssignmentSet:
    """
    A (thin) abstraction over the bundle assignments of one assessment.

    The primary bucket never maps a group to more than one bundle: a second
    bundle for the same group is appended to the student's extraneous list so
    that validation can flag it instead of it being silently dropped.
    """

    def __init__(self, students: Iterable[int], group_bundles: Mapping[int, Sequence[int]]):
        self.group_bundles: dict[int, list[int]] = {
            group: list(bundles) for group, bundles in group_bundles.items()
        }
        self.assignments: dict[int, StudentAssignment] = {
            student: StudentAssignment() for student in students
        }
        self._bundle_groups: dict[int, int] = {
            bundle: group for group, bundles in self.group_bundles.items() for bundle in bundles
        }

    @property
    def students(self) -> list[int]:
        return list(self.assignments)

    @property
    def groups(self) -> list[int]:
        return list(self.group_bundles)

    def group_of(self, bundle: int) -> int:
        try:
            return self._bundle_groups[bundle]
        except KeyError:
            raise InconsistentAssignmentData(
                f"Bundle {bundle} does not belong to any question group", bundle_id=bundle
            ) from None

    def add_assignment(self, student: int, bundle: int) -> None:
        group = self.group_of(bundle)
        assignment = self.assignments.get(student)
        if assignment is None:
            raise InconsistentAssignmentData(
                f"Student {student} is not part of this assignment set",
                student_id=student,
                bundle_id=bundle,
            )
        if group in assignment.bundles:
            assignment.extraneous.append(bundle)
        else:
            assignment.bundles[group] = bundle

    def bundle_for(self, student: int, group: int) -> int | None:
        return self.assignments[student].bundles.get(group)

    def extraneous_for(self, student: int) -> list[int]:
        return list(self.assignments[student].extraneous)

    def iter_primary(self) -> Iterator[tuple[int, int, int]]:
        """Yield (student, group, bundle) for every primary-bucket assignment."""
        for student, assignment in self.assignments.items():
            for group, bundle in assignment.bundles.items():
                yield student, group, bundle

    def primary_rows(self) -> set[tuple[int, int, int]]:
        return set(self.iter_primary())

    def __len__(self) -> int:
        return sum(len(a.bundles) + len(a.extraneous) for a in self.assignments.values())

    def __repr__(self) -> str:
        return f"<AssignmentSet students={len(self.assignments)} groups={len(self.group_bundles)}>"

"""
Random bundle assignment.

Naive strategy: for each student and each group, draw one bundle uniformly.
Randomization never fails; a group with no bundles simply yields no
assignment, which validation reports later.
"""
from __future__ import annotations

import hashlib
import random
from collections.abc import Iterable, Mapping, Sequence

from .assignment_set import AssignmentSet


def create_seed(seed: str | int) -> int:
    """Create a reproducible integer seed from string or int."""
    if isinstance(seed, int):
        return seed

    # Hash string to create seed
    hash_bytes = hashlib.sha256(str(seed).encode()).digest()
    return int.from_bytes(hash_bytes[:8], byteorder="big")


def make_rng(seed: str | int | None = None) -> random.Random:
    """Random source for randomization; seeded for reproducible runs."""
    if seed is None:
        return random.Random()
    return random.Random(create_seed(seed))


def randomize(
    students: Iterable[int],
    group_bundles: Mapping[int, Sequence[int]],
    rng: random.Random | None = None,
) -> AssignmentSet:
    """Produce one candidate AssignmentSet by independent draws per student per group."""
    rng = rng or random.Random()
    students = list(students)
    assignment_set = AssignmentSet(students, group_bundles)
    for student in students:
        for bundles in group_bundles.values():
            if not bundles:
                continue
            assignment_set.add_assignment(student, bundles[rng.randrange(len(bundles))])
    return assignment_set

"""
Validation result records for bundle assignment.

Every check produces one ValidationResult keyed by a fixed rule name. The
`info` payload is typed per rule and the offending cells map
(student, group-or-None) coordinates to a reason code, so a formatter can
render messages without the engine producing any text of its own.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar, Union


class Severity(str, Enum):
    HARD = "hard"
    SOFT = "soft"


class Reason(str, Enum):
    """Why a cell of the assignment table was flagged."""

    MISSING_BUNDLE = "missing_bundle"
    UNBUNDLED = "unbundled"
    REPEAT_BUNDLE = "repeat_bundle"


# (student, group) or (student, None) for the extraneous bucket
Cell = tuple[int, Union[int, None]]


def to_sentence(words: Sequence[str]) -> str:
    """Join words as a natural-language list: 'a', 'a and b', 'a, b, and c'."""
    if not words:
        return ""
    if len(words) == 1:
        return words[0]
    if len(words) == 2:
        return f"{words[0]} and {words[1]}"
    return f"{', '.join(words[:-1])}, and {words[-1]}"


@dataclass(frozen=True)
class OverlappingQuestionsInfo:
    questions: tuple[str, ...] = ()

    @property
    def sentence(self) -> str:
        return to_sentence(self.questions)


@dataclass(frozen=True)
class EmptyGroupsInfo:
    groups: tuple[str, ...] = ()

    @property
    def sentence(self) -> str:
        return to_sentence(self.groups)


@dataclass(frozen=True)
class OffendingStudentsInfo:
    """Students implicated by a per-cell check; names are resolved by the formatter."""

    students: tuple[int, ...] = ()


InfoT = TypeVar("InfoT", OverlappingQuestionsInfo, EmptyGroupsInfo, OffendingStudentsInfo)


@dataclass(frozen=True)
class ValidationResult(Generic[InfoT]):
    rule: str
    severity: Severity
    passed: bool
    info: InfoT
    offending_cells: Mapping[Cell, Reason] = field(default_factory=dict)
    score_penalty: float = 0.0

    @property
    def blocking(self) -> bool:
        return self.severity is Severity.HARD and not self.passed


class ValidationReport(Mapping[str, ValidationResult]):
    """
    Results of every check, keyed by rule name.

    The report passes when every hard result passes. Soft results never block
    but still contribute to `score_penalty`, which ranks candidates.
    """

    def __init__(self, results: Mapping[str, ValidationResult]):
        self._results = dict(results)

    @classmethod
    def merge(cls, *results: ValidationResult) -> ValidationReport:
        merged: dict[str, ValidationResult] = {}
        for result in results:
            if result.rule in merged:
                raise ValueError(f"Duplicate validation rule: {result.rule}")
            merged[result.rule] = result
        return cls(merged)

    def __getitem__(self, rule: str) -> ValidationResult:
        return self._results[rule]

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    @property
    def passed(self) -> bool:
        return not any(result.blocking for result in self._results.values())

    @property
    def score_penalty(self) -> float:
        return sum(result.score_penalty for result in self._results.values())

    def failures(self) -> list[ValidationResult]:
        return [result for result in self._results.values() if not result.passed]

    def offending_cells(self) -> dict[Cell, list[Reason]]:
        """All offending cells across rules, for highlighting a table view."""
        cells: dict[Cell, list[Reason]] = {}
        for result in self._results.values():
            for cell, reason in result.offending_cells.items():
                cells.setdefault(cell, []).append(reason)
        return cells

    def __repr__(self) -> str:
        failed = [r.rule for r in self.failures()]
        return f"<ValidationReport passed={self.passed} failed={failed}>"

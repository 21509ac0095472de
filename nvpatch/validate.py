from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .model import SubstitutionRule


@dataclass(frozen=True)
class Conflict:
    literal: str
    first_to: str
    second_to: str
    first: SubstitutionRule
    second: SubstitutionRule

    def message(self) -> str:
        return (
            f"Trying to substitute '{self.literal}' to both "
            f"'{self.first_to}' and '{self.second_to}'"
        )


@dataclass(frozen=True)
class ConflictReport:
    conflicts: list[Conflict] = field(default_factory=list)
    # identical (from, to) rules seen more than once; harmless
    duplicates: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts


def validate_rules(rules: Sequence[SubstitutionRule]) -> ConflictReport:
    """Check that no literal is mapped to two different replacements.

    Every later rule is compared against the first rule seen for the same
    literal, so a literal mapped three ways yields two conflicts.
    """
    first_by_literal: dict[str, SubstitutionRule] = {}
    conflicts: list[Conflict] = []
    duplicates: list[str] = []

    for rule in rules:
        seen = first_by_literal.get(rule.from_)
        if seen is None:
            first_by_literal[rule.from_] = rule
            continue
        if seen.to == rule.to:
            duplicates.append(rule.from_)
            continue
        conflicts.append(
            Conflict(
                literal=rule.from_,
                first_to=seen.to,
                second_to=rule.to,
                first=seen,
                second=rule,
            )
        )

    return ConflictReport(conflicts=conflicts, duplicates=duplicates)

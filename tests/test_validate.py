from __future__ import annotations

from nvpatch.model import SubstitutionRule
from nvpatch.validate import validate_rules


def test_conflicting_targets_reported() -> None:
    report = validate_rules(
        [SubstitutionRule.raw("a", "x"), SubstitutionRule.raw("a", "y")]
    )
    assert not report.ok
    assert len(report.conflicts) == 1
    conflict = report.conflicts[0]
    assert (conflict.literal, conflict.first_to, conflict.second_to) == ("a", "x", "y")
    assert conflict.message() == "Trying to substitute 'a' to both 'x' and 'y'"


def test_identical_duplicates_are_fine() -> None:
    report = validate_rules(
        [SubstitutionRule.raw("a", "x"), SubstitutionRule.string("a", "x")]
    )
    assert report.ok
    assert report.duplicates == ["a"]


def test_empty_rule_set_is_valid() -> None:
    assert validate_rules([]).ok


def test_distinct_literals_same_target_are_fine() -> None:
    report = validate_rules(
        [
            SubstitutionRule.url("https://github.com/o/r", "/p", "r"),
            SubstitutionRule.url("o/r", "/p", "r"),
        ]
    )
    assert report.ok
    assert report.duplicates == []


def test_every_later_conflict_is_listed() -> None:
    report = validate_rules(
        [
            SubstitutionRule.raw("a", "x"),
            SubstitutionRule.raw("b", "1"),
            SubstitutionRule.raw("a", "y"),
            SubstitutionRule.raw("a", "z"),
        ]
    )
    assert [(c.first_to, c.second_to) for c in report.conflicts] == [
        ("x", "y"),
        ("x", "z"),
    ]

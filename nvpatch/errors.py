from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validate import ConflictReport


class NvPatchError(Exception):
    """Base class for every fatal condition raised by nvpatch."""


class MalformedDirectiveError(NvPatchError, ValueError):
    """A directive blob is missing a required field or has an unknown type."""


class SubstitutionConflictError(NvPatchError, ValueError):
    def __init__(self, report: ConflictReport) -> None:
        self.report = report
        first = report.conflicts[0]
        super().__init__(
            f"Trying to substitute {first.literal!r} to both "
            f"{first.first_to!r} and {first.second_to!r}"
            + (
                f" (+{len(report.conflicts) - 1} more)"
                if len(report.conflicts) > 1
                else ""
            )
        )


class RegistryAccessError(NvPatchError, OSError):
    """A registry listing file could not be opened."""

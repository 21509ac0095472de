from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

from .formats import DEFAULT_HOSTED_MARKER

SourceKind = Literal["unresolved", "generic-url", "hosted-url"]
RuleKind = Literal["url", "string", "raw"]


@dataclass(frozen=True)
class PluginSelection:
    """One ``pname|version|path`` entry of the plugin-selection blob."""

    pname: str
    version: str
    path: str


@dataclass(frozen=True)
class PluginRecord:
    """A selected plugin joined with its upstream reference from the registry."""

    pname: str
    version: str
    path: str  # local store path the plugin resolves to
    source: SourceKind = "unresolved"
    url: str | None = None
    hosted_marker: str = DEFAULT_HOSTED_MARKER

    @property
    def short_url(self) -> str | None:
        """``owner/repo`` form of a hosted url, e.g. for lazy.nvim specs."""
        if self.source != "hosted-url" or self.url is None:
            return None
        _, sep, tail = self.url.partition(self.hosted_marker)
        return tail if sep else None


@dataclass(frozen=True)
class SubstitutionRule:
    from_: str
    to: str
    kind: RuleKind = "raw"
    # pname for "url", optional key for "string", unused for "raw"
    extra: str | None = None

    def __post_init__(self) -> None:
        if not self.from_:
            raise ValueError("substitution literal must not be empty")
        if self.kind == "raw" and self.extra is not None:
            raise ValueError("raw substitutions carry no extra data")
        if self.kind == "url" and self.extra is None:
            raise ValueError("url substitutions need a provenance pname")

    @classmethod
    def url(cls, from_: str, to: str, pname: str) -> SubstitutionRule:
        return cls(from_=from_, to=to, kind="url", extra=pname)

    @classmethod
    def string(cls, from_: str, to: str, key: str | None = None) -> SubstitutionRule:
        return cls(from_=from_, to=to, kind="string", extra=key)

    @classmethod
    def raw(cls, from_: str, to: str) -> SubstitutionRule:
        return cls(from_=from_, to=to)

    @property
    def provenance(self) -> str | None:
        return self.extra if self.kind == "url" else None

    @property
    def key(self) -> str | None:
        return self.extra if self.kind == "string" else None

    def describe(self) -> str:
        head = f"Substitution({self.kind}){{'{self.from_}' -> '{self.to}'"
        if self.kind == "url":
            return f"{head}, pname: {self.extra}}}"
        if self.kind == "string":
            return f"{head}, key: {self.extra if self.extra is not None else 'null'}}}"
        return f"{head}}}"


@dataclass(frozen=True)
class RuleSet:
    """Validated, ordered rules. Built by ``rules.build_ruleset``."""

    rules: tuple[SubstitutionRule, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[SubstitutionRule]:
        return iter(self.rules)

    def encoded(self) -> tuple[tuple[bytes, bytes], ...]:
        # argv bytes that are not valid UTF-8 arrive as surrogate escapes
        return tuple((os.fsencode(r.from_), os.fsencode(r.to)) for r in self.rules)

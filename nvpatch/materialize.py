from __future__ import annotations

import logging
import os
import shutil
import stat
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import pathspec

from .formats import DEFAULT_ENTRY_POINT, DEFAULT_EXTENSIONS
from .model import RuleSet
from .substitute import scan

EntryKind = Literal["directory", "file", "other"]


@dataclass(frozen=True)
class TreeEntry:
    path: Path  # absolute, inside the input root
    rel: str  # POSIX path relative to the input root
    kind: EntryKind
    is_target: bool = False  # file routed through the substitution scan


@dataclass
class MaterializeReport:
    scanned: list[str] = field(default_factory=list)
    copied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)
    substitutions: int = 0


def _entry_kind(mode: int) -> EntryKind:
    if stat.S_ISDIR(mode):
        return "directory"
    if stat.S_ISREG(mode):
        return "file"
    return "other"


def _kind_label(path: Path) -> str:
    mode = path.lstat().st_mode
    if stat.S_ISLNK(mode):
        return "sym_link"
    if stat.S_ISFIFO(mode):
        return "named_pipe"
    if stat.S_ISSOCK(mode):
        return "unix_domain_socket"
    if stat.S_ISCHR(mode):
        return "character_device"
    if stat.S_ISBLK(mode):
        return "block_device"
    return "unknown"


def build_exclude_spec(patterns: Sequence[str] | None) -> pathspec.PathSpec | None:
    if not patterns:
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def _is_excluded(spec: pathspec.PathSpec | None, rel: str, kind: EntryKind) -> bool:
    if spec is None:
        return False
    if kind == "directory":
        return spec.match_file(rel + "/")
    return spec.match_file(rel)


def walk_tree(
    root: Path,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    *,
    exclude: pathspec.PathSpec | None = None,
    excluded: list[str] | None = None,
) -> Iterator[TreeEntry]:
    """Yield every entry below ``root`` depth-first, parents before children.

    Siblings are visited in name order so runs are reproducible. Symlinks are
    reported as ``other`` and never followed. Excluded directories are pruned;
    their relative paths are appended to ``excluded`` when given.
    """
    suffixes = {e.lower() for e in extensions}
    yield from _walk(root, root, suffixes, exclude, excluded)


def _walk(
    root: Path,
    current: Path,
    suffixes: set[str],
    exclude: pathspec.PathSpec | None,
    excluded: list[str] | None,
) -> Iterator[TreeEntry]:
    for child in sorted(current.iterdir(), key=lambda p: p.name):
        kind = _entry_kind(child.lstat().st_mode)
        rel = child.relative_to(root).as_posix()
        if _is_excluded(exclude, rel, kind):
            if excluded is not None:
                excluded.append(rel)
            continue
        yield TreeEntry(
            path=child,
            rel=rel,
            kind=kind,
            is_target=kind == "file" and child.suffix.lower() in suffixes,
        )
        if kind == "directory":
            yield from _walk(root, child, suffixes, exclude, excluded)


def _read_bytes(path: Path) -> bytes:
    with path.open("rb") as fh:
        return fh.read()


def materialize_tree(
    in_root: Path,
    out_root: Path,
    rules: RuleSet,
    *,
    prologue: str = "",
    entry_point: str = DEFAULT_ENTRY_POINT,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    exclude: Sequence[str] | None = None,
    logger: logging.Logger,
) -> MaterializeReport:
    """Regenerate ``out_root`` from ``in_root``.

    Target files are rewritten through the substitution scan; the entry
    point additionally gets ``prologue`` in front of its content. Every other
    regular file is copied byte for byte. Existing output is overwritten, and
    nothing is removed from ``out_root`` beforehand.
    """
    assert in_root.is_absolute(), f"input path must be absolute: {in_root}"
    assert out_root.is_absolute(), f"output path must be absolute: {out_root}"

    logger.debug("Attempting to create '%s'", out_root)
    out_root.mkdir(parents=True, exist_ok=True)

    patterns = rules.encoded()
    prologue_bytes = os.fsencode(prologue)
    report = MaterializeReport()

    logger.info("Starting directory walk")
    entries = walk_tree(
        in_root,
        extensions,
        exclude=build_exclude_spec(exclude),
        excluded=report.excluded,
    )
    for entry in entries:
        target = out_root / entry.rel
        if entry.kind == "directory":
            target.mkdir(exist_ok=True)
        elif entry.kind == "file" and entry.is_target:
            logger.info("parsing '%s'", entry.rel)
            result = scan(_read_bytes(entry.path), patterns, logger=logger)
            with target.open("wb") as fh:
                if entry.rel == entry_point:
                    fh.write(prologue_bytes)
                fh.write(result.data)
            report.scanned.append(entry.rel)
            report.substitutions += result.count
        elif entry.kind == "file":
            logger.info("copying '%s'", entry.rel)
            shutil.copyfile(entry.path, target)
            report.copied.append(entry.rel)
        else:
            logger.warning(
                "Skipping '%s': unsupported entry kind %s",
                entry.rel,
                _kind_label(entry.path),
            )
            report.skipped.append(entry.rel)

    for rel in report.excluded:
        logger.debug("excluded '%s'", rel)
    return report

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .directives import parse_plugin_selection
from .errors import RegistryAccessError
from .formats import DEFAULT_HOSTED_MARKER, DEFAULT_REGISTRY_FILES, GITHUB_URL_PREFIX
from .model import PluginRecord, PluginSelection, SourceKind

_PNAME_RE = re.compile(r'\bpname\s*=\s*"(?P<pname>[^"]+)"\s*;')
_VERSION_RE = re.compile(r'\bversion\s*=\s*"(?P<version>[^"]*)"\s*;')
_GITHUB_RE = re.compile(r"\bfetchFromGitHub\s*\{(?P<body>[^}]*)\}")
_OWNER_RE = re.compile(r'\bowner\s*=\s*"(?P<v>[^"]+)"')
_REPO_RE = re.compile(r'\brepo\s*=\s*"(?P<v>[^"]+)"')
_HOMEPAGE_RE = re.compile(r'\bhomepage\s*=\s*"(?P<url>[^"]+)"')
_FETCH_URL_RE = re.compile(
    r"\bsrc\s*=\s*\(?\s*fetch(?:git|url|zip)\s*\{[^}]*?\burl\s*=\s*\"(?P<url>[^\"]+)\""
)


@dataclass(frozen=True)
class RegistryEntry:
    pname: str
    version: str
    url: str | None
    listing: str  # listing file the entry came from


def normalize_url(url: str) -> str:
    url = url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return url


def _entry_url(segment: str) -> str | None:
    gh = _GITHUB_RE.search(segment)
    if gh:
        owner = _OWNER_RE.search(gh.group("body"))
        repo = _REPO_RE.search(gh.group("body"))
        if owner and repo:
            return f"{GITHUB_URL_PREFIX}{owner.group('v')}/{repo.group('v')}"

    home = _HOMEPAGE_RE.search(segment)
    if home:
        return normalize_url(home.group("url"))

    fetched = _FETCH_URL_RE.search(segment)
    if fetched and not fetched.group("url").startswith("mirror://"):
        return normalize_url(fetched.group("url"))
    return None


def parse_listing(text: str, *, listing: str = "") -> list[RegistryEntry]:
    """Extract ``pname``/``version``/upstream url triples from a generated listing.

    Each package block is taken to run from its ``pname = "...";`` line to the
    next one. Blocks without a usable upstream reference get ``url=None``.
    """
    starts = list(_PNAME_RE.finditer(text))
    out: list[RegistryEntry] = []
    for i, m in enumerate(starts):
        end = starts[i + 1].start() if i + 1 < len(starts) else len(text)
        segment = text[m.end() : end]
        version = _VERSION_RE.search(segment)
        out.append(
            RegistryEntry(
                pname=m.group("pname"),
                version=version.group("version") if version else "",
                url=_entry_url(segment),
                listing=listing,
            )
        )
    return out


def load_registry(
    registry_root: Path,
    files: Sequence[str] = DEFAULT_REGISTRY_FILES,
    *,
    logger: logging.Logger | None = None,
) -> dict[str, list[RegistryEntry]]:
    assert registry_root.is_absolute(), (
        f"registry root must be absolute: {registry_root}"
    )

    index: dict[str, list[RegistryEntry]] = {}
    for rel in files:
        path = registry_root / rel
        if logger is not None:
            logger.debug("Attempting to open file '%s'", path)
        try:
            with path.open("r", encoding="utf-8", errors="replace") as fh:
                text = fh.read()
        except OSError as e:
            raise RegistryAccessError(
                f"Unable to open registry listing '{path}': {e}"
            ) from e
        for entry in parse_listing(text, listing=rel):
            index.setdefault(entry.pname, []).append(entry)
    return index


def classify_url(
    url: str | None, hosted_marker: str = DEFAULT_HOSTED_MARKER
) -> SourceKind:
    if not url:
        return "unresolved"
    if hosted_marker in url:
        return "hosted-url"
    return "generic-url"


def _pick(candidates: list[RegistryEntry], version: str) -> RegistryEntry:
    for entry in candidates:
        if entry.version == version:
            return entry
    return candidates[0]


def resolve_plugins(
    selections: Iterable[PluginSelection],
    index: dict[str, list[RegistryEntry]],
    *,
    hosted_marker: str = DEFAULT_HOSTED_MARKER,
    logger: logging.Logger | None = None,
) -> list[PluginRecord]:
    out: list[PluginRecord] = []
    for sel in selections:
        candidates = index.get(sel.pname)
        url: str | None = None
        if candidates:
            entry = _pick(candidates, sel.version)
            url = entry.url
            if logger is not None and entry.version != sel.version:
                logger.debug(
                    "Version mismatch for '%s': selected %s, registry lists %s",
                    sel.pname,
                    sel.version,
                    entry.version,
                )
        elif logger is not None:
            logger.debug("Plugin '%s' not found in registry", sel.pname)

        source = classify_url(url, hosted_marker)
        if logger is not None and source == "unresolved":
            logger.debug("No upstream url for '%s', no substitutions", sel.pname)
        out.append(
            PluginRecord(
                pname=sel.pname,
                version=sel.version,
                path=sel.path,
                source=source,
                url=url if source != "unresolved" else None,
                hosted_marker=hosted_marker,
            )
        )
    return out


def read_plugins(
    registry_root: Path,
    selection_blob: str,
    *,
    files: Sequence[str] = DEFAULT_REGISTRY_FILES,
    hosted_marker: str = DEFAULT_HOSTED_MARKER,
    logger: logging.Logger | None = None,
) -> list[PluginRecord]:
    """Turn the plugin-selection blob into classified plugin records."""
    selections = parse_plugin_selection(selection_blob)
    index = load_registry(registry_root, files, logger=logger)
    return resolve_plugins(
        selections, index, hosted_marker=hosted_marker, logger=logger
    )

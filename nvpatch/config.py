from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from .formats import (
    DEFAULT_ENTRY_POINT,
    DEFAULT_EXTENSIONS,
    DEFAULT_HOSTED_MARKER,
    DEFAULT_REGISTRY_FILES,
)
from .log import LEVELS

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # pyright: ignore[reportMissingImports]

CONFIG_FILENAMES: tuple[str, ...] = (".nvpatch.toml", "nvpatch.toml")
PYPROJECT_FILENAME = "pyproject.toml"


@dataclass
class Config:
    # Relative path (POSIX) of the Lua file that receives the prologue.
    entry_point: str = DEFAULT_ENTRY_POINT
    # Files with these suffixes are scanned; everything else is copied verbatim.
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    # gitignore-style patterns of input entries left out of the output tree.
    exclude: list[str] = field(default_factory=list)
    # URL infix that marks a hosted source; the short form is what follows it.
    hosted_marker: str = DEFAULT_HOSTED_MARKER
    # Registry listings, relative to the registry root.
    registry_files: list[str] = field(
        default_factory=lambda: list(DEFAULT_REGISTRY_FILES)
    )
    log_level: str = "info"
    color: Literal["auto", "always", "never"] = "auto"


def find_config_path(root: Path) -> Path | None:
    root = root.resolve()
    for name in CONFIG_FILENAMES:
        p = root / name
        if p.exists():
            return p
    pyproject = root / PYPROJECT_FILENAME
    if pyproject.exists():
        return pyproject
    return None


def _extract_section(data: Any, *, from_pyproject: bool) -> dict[str, Any]:
    section: dict[str, Any] = {}
    if not isinstance(data, dict):
        return section

    if not from_pyproject:
        # Preferred for dedicated config files: [nvpatch]
        nv = data.get("nvpatch")
        if isinstance(nv, dict):
            return nv

    # Supported in all files; required for pyproject.toml.
    tool = data.get("tool")
    if isinstance(tool, dict):
        nv2 = tool.get("nvpatch")
        if isinstance(nv2, dict):
            return nv2

    return section


def _str_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [str(x) for x in value if str(x).strip()]


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def load_config_file(cfg_path: Path) -> Config:
    data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    section = _extract_section(data, from_pyproject=cfg_path.name == PYPROJECT_FILENAME)
    cfg = Config()

    entry = section.get("entry_point", cfg.entry_point)
    if isinstance(entry, str) and entry.strip():
        cfg.entry_point = entry.strip().replace("\\", "/").lstrip("/")

    exts = _str_list(section.get("extensions"))
    if exts:
        cfg.extensions = [_normalize_extension(e) for e in exts]

    exc = _str_list(section.get("exclude"))
    if exc is not None:
        cfg.exclude = exc

    marker = section.get("hosted_marker", cfg.hosted_marker)
    if isinstance(marker, str) and marker.strip():
        cfg.hosted_marker = marker.strip()

    reg = _str_list(section.get("registry_files"))
    if reg:
        cfg.registry_files = reg

    level = section.get("log_level", cfg.log_level)
    if isinstance(level, str) and level.strip().lower() in LEVELS:
        cfg.log_level = level.strip().lower()

    color = section.get("color", cfg.color)
    if isinstance(color, bool):
        cfg.color = "always" if color else "never"
    elif isinstance(color, str):
        color = color.strip().lower()
        if color in {"auto", "always", "never"}:
            cfg.color = color  # type: ignore[assignment]

    return cfg


def load_config(root: Path) -> Config:
    cfg_path = find_config_path(root)
    if cfg_path is None:
        return Config()
    return load_config_file(cfg_path)

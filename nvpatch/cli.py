from __future__ import annotations

import argparse
import importlib.metadata as importlib_metadata
import logging
import sys
import time
from pathlib import Path

from .config import Config, load_config, load_config_file
from .errors import (
    MalformedDirectiveError,
    RegistryAccessError,
    SubstitutionConflictError,
)
from .formats import USAGE_DETAILS
from .log import LEVELS, build_logger
from .materialize import materialize_tree
from .model import RuleSet
from .registry import read_plugins
from .rules import build_ruleset

PARAM_NAMES = ("REGISTRY", "INPUT", "OUTPUT", "PLUGINS", "SUBS", "PROLOGUE")
PATH_PARAMS = ("REGISTRY", "INPUT", "OUTPUT")


def _nvpatch_version() -> str:
    try:
        return importlib_metadata.version("nvpatch")
    except importlib_metadata.PackageNotFoundError:
        return "0+unknown"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="nvpatch",
        usage="%(prog)s [options] " + " ".join(PARAM_NAMES),
        description=(
            "Regenerate a Neovim Lua config tree with plugin references "
            "rewritten to local store paths."
        ),
        epilog=USAGE_DETAILS,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"nvpatch {_nvpatch_version()}",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: nvpatch.toml/.nvpatch.toml/pyproject.toml in CWD)",
    )
    p.add_argument(
        "--log-level",
        choices=sorted(LEVELS),
        default=None,
        help="Diagnostic verbosity (default: info via config)",
    )
    p.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default=None,
        help="Highlight warnings and errors (default: auto via config)",
    )
    p.add_argument(
        "--entry-point",
        default=None,
        help="Relative path of the file that receives PROLOGUE (default: init.lua)",
    )
    p.add_argument(
        "--print-rules",
        action="store_true",
        help="Debug: print the validated substitutions before patching",
    )
    # Options must come first: PROLOGUE often starts with a Lua `--` comment.
    p.add_argument("params", nargs=argparse.REMAINDER, help=argparse.SUPPRESS)
    return p


def _resolve_config(args: argparse.Namespace) -> Config:
    if args.config is not None:
        cfg = load_config_file(args.config)
    else:
        cfg = load_config(Path.cwd())
    if args.log_level is not None:
        cfg.log_level = args.log_level
    if args.color is not None:
        cfg.color = args.color
    if args.entry_point:
        cfg.entry_point = args.entry_point.strip().replace("\\", "/").lstrip("/")
    return cfg


def _print_rules(rules: RuleSet) -> None:
    print(f"Debug: {len(rules)} substitution(s):", file=sys.stderr)
    for rule in rules:
        print(f"  {rule.describe()}", file=sys.stderr)


def _report_conflicts(logger: logging.Logger, err: SubstitutionConflictError) -> None:
    for conflict in err.report.conflicts:
        logger.error("%s", conflict.message())
    logger.error(
        "This may be because you have a substitution that collides with a plugin"
    )
    logger.error("or 2 substitutions that collide with each other. exiting...")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    raw_argv = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(raw_argv)

    params = list(args.params)
    if params and params[0] == "--":
        params = params[1:]
    if len(params) != len(PARAM_NAMES):
        parser.error(
            f"invalid arguments, expected {len(PARAM_NAMES)} got {len(params)}\n"
            + USAGE_DETAILS
        )

    named = dict(zip(PARAM_NAMES, params))
    for name in PATH_PARAMS:
        if not Path(named[name]).is_absolute():
            parser.error(f"{name} must be an absolute path: {named[name]!r}")

    try:
        cfg = _resolve_config(args)
    except (OSError, ValueError) as e:
        parser.error(f"config: {e}")
    logger = build_logger(cfg.log_level, color=cfg.color)

    registry_root = Path(named["REGISTRY"])
    in_root = Path(named["INPUT"])
    out_root = Path(named["OUTPUT"])

    started = time.perf_counter()
    try:
        plugins = read_plugins(
            registry_root,
            named["PLUGINS"],
            files=cfg.registry_files,
            hosted_marker=cfg.hosted_marker,
            logger=logger,
        )
        rules = build_ruleset(plugins, named["SUBS"], logger=logger)
        if args.print_rules:
            _print_rules(rules)
        report = materialize_tree(
            in_root,
            out_root,
            rules,
            prologue=named["PROLOGUE"],
            entry_point=cfg.entry_point,
            extensions=cfg.extensions,
            exclude=cfg.exclude,
            logger=logger,
        )
    except SubstitutionConflictError as e:
        _report_conflicts(logger, e)
        raise SystemExit(1) from e
    except MalformedDirectiveError as e:
        logger.error("Malformed directive: %s", e)
        raise SystemExit(1) from e
    except RegistryAccessError as e:
        logger.error("%s", e)
        raise SystemExit(1) from e
    except OSError as e:
        logger.error("Filesystem error: %s", e)
        raise SystemExit(1) from e
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("Patching took %dms", elapsed_ms)

    if report.skipped:
        logger.warning("Skipped %d unsupported tree entries", len(report.skipped))
    print(
        f"Patched {len(report.scanned)} file(s), copied {len(report.copied)} "
        f"file(s), skipped {len(report.skipped)} entries, "
        f"applied {report.substitutions} substitution(s)."
    )


if __name__ == "__main__":
    main()

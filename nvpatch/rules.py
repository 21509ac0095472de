from __future__ import annotations

import logging
from collections.abc import Iterable

from .directives import SubstitutionDirective, parse_substitution_blob
from .errors import MalformedDirectiveError, SubstitutionConflictError
from .formats import DIRECTIVE_PLUGIN, DIRECTIVE_STRING, NO_KEY_MARKER
from .model import PluginRecord, RuleSet, SubstitutionRule
from .validate import validate_rules


def rules_from_plugin(plugin: PluginRecord) -> list[SubstitutionRule]:
    if plugin.source == "unresolved" or plugin.url is None:
        return []

    rules = [SubstitutionRule.url(plugin.url, plugin.path, plugin.pname)]
    if plugin.source == "hosted-url":
        short = plugin.short_url
        if short:
            rules.append(SubstitutionRule.url(short, plugin.path, plugin.pname))
    return rules


def rules_from_plugins(plugins: Iterable[PluginRecord]) -> list[SubstitutionRule]:
    out: list[SubstitutionRule] = []
    for plugin in plugins:
        out.extend(rules_from_plugin(plugin))
    return out


def rule_from_directive(entry: SubstitutionDirective) -> SubstitutionRule:
    try:
        if entry.type == DIRECTIVE_PLUGIN:
            return SubstitutionRule.url(entry.from_, entry.to, entry.extra)
        if entry.type == DIRECTIVE_STRING:
            key = None if entry.extra == NO_KEY_MARKER else entry.extra
            return SubstitutionRule.string(entry.from_, entry.to, key)
    except ValueError as e:
        raise MalformedDirectiveError(f"substitutions: {e}") from e
    raise MalformedDirectiveError(
        f"substitutions: unknown type {entry.type!r} "
        f"(expected {DIRECTIVE_PLUGIN!r} or {DIRECTIVE_STRING!r})"
    )


def rules_from_blob(blob: str) -> list[SubstitutionRule]:
    return [rule_from_directive(e) for e in parse_substitution_blob(blob)]


def build_ruleset(
    plugins: Iterable[PluginRecord],
    subs_blob: str,
    *,
    logger: logging.Logger | None = None,
) -> RuleSet:
    """Derive, merge and validate every rule for one run.

    Plugin rules come first, then the directive blob, which fixes the
    tie-break order used by the scan. Raises ``SubstitutionConflictError``
    before anything touches the filesystem.
    """
    rules = rules_from_plugins(plugins)
    rules.extend(rules_from_blob(subs_blob))

    report = validate_rules(rules)
    if not report.ok:
        raise SubstitutionConflictError(report)

    if logger is not None:
        logger.debug("Derived %d substitution(s)", len(rules))
        for rule in rules:
            logger.debug("  %s", rule.describe())
    return RuleSet(rules=tuple(rules))

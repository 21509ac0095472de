from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .model import RuleSet

_NOT_FOUND = -1
_STALE = -2


@dataclass(frozen=True)
class ScanResult:
    data: bytes
    count: int


def scan(
    data: bytes,
    patterns: Sequence[tuple[bytes, bytes]],
    *,
    logger: logging.Logger | None = None,
) -> ScanResult:
    """Apply literal ``(from, to)`` patterns to ``data`` in one left-to-right pass.

    At each step the pattern whose next occurrence starts closest to the
    cursor wins; on a tie the pattern listed first wins. Replacement text is
    emitted and never looked at again. Each pattern remembers where it was
    last found so the buffer is searched at most once per pattern and match.
    """
    if any(not needle for needle, _ in patterns):
        raise ValueError("substitution literal must not be empty")

    # next offset per pattern; _STALE means "search again", _NOT_FOUND is final
    found = [_STALE] * len(patterns)
    parts: list[bytes] = []
    cursor = 0
    count = 0

    while cursor < len(data):
        best = -1
        best_at = 0
        for i, (needle, _) in enumerate(patterns):
            at = found[i]
            if at == _NOT_FOUND:
                continue
            if at < cursor:
                at = data.find(needle, cursor)
                found[i] = at
                if at == _NOT_FOUND:
                    continue
            if best < 0 or at < best_at:
                best = i
                best_at = at

        if best < 0:
            break

        needle, replacement = patterns[best]
        if logger is not None and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Sub '%s' -> '%s'",
                needle.decode(errors="replace"),
                replacement.decode(errors="replace"),
            )
        parts.append(data[cursor:best_at])
        parts.append(replacement)
        cursor = best_at + len(needle)
        count += 1

    parts.append(data[cursor:])
    return ScanResult(data=b"".join(parts), count=count)


def substitute(
    data: bytes,
    rules: RuleSet,
    *,
    logger: logging.Logger | None = None,
) -> bytes:
    """Return a new buffer with every rule applied to ``data``."""
    return scan(data, rules.encoded(), logger=logger).data

from __future__ import annotations

import os
from dataclasses import dataclass

from .cursor import DirectiveCursor
from .errors import MalformedDirectiveError
from .formats import ENTRY_SEPARATOR, FIELD_SEPARATOR, MIN_BLOB_LEN
from .model import PluginSelection


@dataclass(frozen=True)
class SubstitutionDirective:
    """One ``type|from|to|extra`` entry of the extra-substitution blob."""

    type: str
    from_: str
    to: str
    extra: str


def _required(cursor: DirectiveCursor, what: str, blob_name: str) -> str:
    start = cursor.pos
    value = cursor.next_until(FIELD_SEPARATOR)
    if value is None:
        raise MalformedDirectiveError(
            f"{blob_name}: missing '{FIELD_SEPARATOR}' after {what} "
            f"at offset {start}: {cursor.buf[start:]!r}"
        )
    return value


def _last(cursor: DirectiveCursor, what: str, blob_name: str) -> str:
    start = cursor.pos
    value = cursor.next_field(ENTRY_SEPARATOR)
    if value is None:
        raise MalformedDirectiveError(
            f"{blob_name}: missing {what} at offset {start}"
        )
    return value


def parse_plugin_selection(blob: str) -> list[PluginSelection]:
    """Parse ``pname|version|path;...``. Blobs shorter than 3 bytes are empty."""
    if len(os.fsencode(blob)) < MIN_BLOB_LEN:
        return []

    out: list[PluginSelection] = []
    cursor = DirectiveCursor(blob)
    while not cursor.is_done():
        pname = _required(cursor, "pname", "plugins")
        version = _required(cursor, "version", "plugins")
        path = _last(cursor, "path", "plugins")
        out.append(PluginSelection(pname=pname, version=version, path=path))
    return out


def parse_substitution_blob(blob: str) -> list[SubstitutionDirective]:
    """Parse ``type|from|to|extra;...``. Blobs shorter than 3 bytes are empty."""
    if len(os.fsencode(blob)) < MIN_BLOB_LEN:
        return []

    out: list[SubstitutionDirective] = []
    cursor = DirectiveCursor(blob)
    while not cursor.is_done():
        typ = _required(cursor, "type", "substitutions")
        from_ = _required(cursor, "from", "substitutions")
        to = _required(cursor, "to", "substitutions")
        extra = _last(cursor, "extra", "substitutions")
        out.append(SubstitutionDirective(type=typ, from_=from_, to=to, extra=extra))
    return out

from __future__ import annotations


class DirectiveCursor:
    """Forward-only scanner over a directive blob.

    The cursor only ever moves towards the end of ``buf``. Lookups return
    slices of the original string and ``None`` when the delimiter does not
    occur again.
    """

    __slots__ = ("buf", "pos")

    def __init__(self, buf: str, pos: int = 0) -> None:
        self.buf = buf
        self.pos = pos

    def is_done(self) -> bool:
        return self.pos >= len(self.buf)

    def _find(self, delim: str) -> int:
        if not delim:
            raise ValueError("delimiter must not be empty")
        if self.is_done():
            return -1
        return self.buf.find(delim, self.pos)

    def peek_until(self, delim: str) -> str | None:
        idx = self._find(delim)
        if idx < 0:
            return None
        return self.buf[self.pos : idx]

    def next_until(self, delim: str) -> str | None:
        idx = self._find(delim)
        if idx < 0:
            return None
        out = self.buf[self.pos : idx]
        self.pos = idx + len(delim)
        return out

    def rest(self) -> str | None:
        if self.is_done():
            return None
        out = self.buf[self.pos :]
        self.pos = len(self.buf)
        return out

    def next_field(self, delim: str) -> str | None:
        """Return the field ending at ``delim`` or, failing that, at end of buffer."""
        out = self.next_until(delim)
        if out is None:
            out = self.rest()
        return out

from __future__ import annotations

import re

_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")


class Handle(int):
    """Drawing-unique record id, written as lowercase hex without prefix."""

    __slots__ = ()

    def __new__(cls, value: int | str = 0) -> "Handle":
        if isinstance(value, str):
            return cls.parse(value)
        if value < 0:
            raise ValueError(f"handle must be non-negative: {value}")
        return super().__new__(cls, value)

    @classmethod
    def parse(cls, text: str) -> "Handle":
        token = text.strip()
        if not _HEX_RE.match(token):
            raise ValueError(f"invalid handle: {text!r}")
        return super().__new__(cls, int(token, 16))

    @property
    def hex(self) -> str:
        return format(int(self), "x")

    def __str__(self) -> str:
        return self.hex

    def __repr__(self) -> str:
        return f"Handle({self.hex!r})"


class HandleGenerator:
    def __init__(self, start: int = 1) -> None:
        self._next = max(int(start), 1)

    @property
    def seed(self) -> Handle:
        """The next handle that would be issued ($HANDSEED)."""
        return Handle(self._next)

    def next(self) -> Handle:
        handle = Handle(self._next)
        self._next += 1
        return handle

    def advance_past(self, handle: int) -> None:
        if handle >= self._next:
            self._next = int(handle) + 1

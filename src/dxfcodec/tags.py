from __future__ import annotations

import io
from typing import IO, Any, Iterable, Iterator, NamedTuple

from .coerce import format_value, value_kind
from .const import BINARY_CHUNK_HEX_CHARS, Revision
from .errors import Diagnostics, MalformedToken, TypeMismatch


class Tag(NamedTuple):
    code: int
    value: Any


class TagReader:
    """Lazy ``(code, text)`` pair reader over a byte source.

    The reader is not restartable; ``push_back`` holds at most one tag so
    the record reader can hand the terminating ``(0, ...)`` back to the
    section framer.
    """

    def __init__(
        self,
        source: IO[bytes] | IO[str] | bytes | Iterable[bytes],
        *,
        filename: str | None = None,
        diagnostics: Diagnostics | None = None,
        strict: bool = False,
    ) -> None:
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(bytes(source))
        self._lines = iter(source)
        self.filename = filename
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics(filename)
        self.strict = strict
        # set once $ACADVER is known; None tries UTF-8 first
        self.encoding: str | None = None
        self.line = 0
        self._line_no = 0
        self._pending: tuple[Tag, int] | None = None
        self._first = True

    def __iter__(self) -> Iterator[Tag]:
        return self

    def __next__(self) -> Tag:
        if self._pending is not None:
            tag, line = self._pending
            self._pending = None
            self.line = line
            return tag

        code_line = self._read_line()
        if code_line is None:
            raise StopIteration
        line = self._line_no
        stripped = code_line.strip()
        if not stripped:
            # tolerate a blank trailing line at end of file
            if self._read_line() is None:
                raise StopIteration
            raise self._malformed("empty group code line", line)
        try:
            code = int(stripped)
        except ValueError:
            raise self._malformed(f"group code is not an integer: {stripped!r}", line) from None
        if code < 0:
            raise self._malformed(f"negative group code: {code}", line)
        try:
            value_kind(code)
        except MalformedToken as exc:
            raise exc.locate(filename=self.filename, line=line) from None

        value_line = self._read_line()
        if value_line is None:
            raise self._malformed(f"premature end of file after group code {code}", line)
        self.line = line
        return Tag(code, value_line)

    def push_back(self, tag: Tag) -> None:
        if self._pending is not None:
            raise RuntimeError("only one tag can be pushed back")
        self._pending = (tag, self.line)

    def peek(self) -> Tag | None:
        if self._pending is None:
            try:
                tag = next(self)
            except StopIteration:
                return None
            self.push_back(tag)
        return self._pending[0]

    def _read_line(self) -> str | None:
        try:
            raw = next(self._lines)
        except StopIteration:
            return None
        self._line_no += 1
        if isinstance(raw, str):
            text = raw[1:] if self._first and raw.startswith("\ufeff") else raw
        else:
            if self._first and raw.startswith(b"\xef\xbb\xbf"):
                raw = raw[3:]
            text = self._decode(raw)
        self._first = False
        return text.rstrip("\r\n")

    def _decode(self, raw: bytes) -> str:
        if self.encoding == "cp1252":
            return raw.decode("cp1252", errors="replace")
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            if self.strict:
                self.diagnostics.warn(
                    "Encoding",
                    "line is not valid UTF-8, decoded as cp1252",
                    line=self._line_no,
                )
            return raw.decode("cp1252", errors="replace")

    def _malformed(self, message: str, line: int) -> MalformedToken:
        return MalformedToken(message, filename=self.filename, line=line)


class TagWriter:
    """Writes typed tags as two-line pairs, LF terminated."""

    def __init__(self, stream: IO[bytes], revision: Revision) -> None:
        self.stream = stream
        self.revision = revision
        self.encoding = "utf-8" if revision >= Revision.R2007 else "cp1252"

    def write_tag(self, code: int, value: Any) -> None:
        text = format_value(code, value, self.revision)
        if len(text) > BINARY_CHUNK_HEX_CHARS and isinstance(value, (bytes, bytearray)):
            for start in range(0, len(text), BINARY_CHUNK_HEX_CHARS):
                self._write_pair(code, text[start:start + BINARY_CHUNK_HEX_CHARS])
            return
        self._write_pair(code, text)

    def write_tags(self, tags: Iterable[Tag]) -> None:
        for code, value in tags:
            self.write_tag(code, value)

    def encode(self, tags: Iterable[Tag]) -> bytes:
        """Encode a whole record up front so a bad value writes nothing."""
        buffer = io.BytesIO()
        writer = TagWriter(buffer, self.revision)
        try:
            writer.write_tags(tags)
        except (TypeError, ValueError, MalformedToken) as exc:
            raise TypeMismatch(f"cannot encode value: {exc}") from exc
        return buffer.getvalue()

    def write_encoded(self, data: bytes) -> None:
        self.stream.write(data)

    def _write_pair(self, code: int, text: str) -> None:
        self.stream.write(f"{code:>3}\n{text}\n".encode(self.encoding, errors="replace"))

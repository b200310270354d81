from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

logger = logging.getLogger(__name__)

WARN = "warn"
ERROR = "error"
FATAL = "fatal"

_LOG_LEVELS = {
    WARN: logging.WARNING,
    ERROR: logging.ERROR,
    FATAL: logging.CRITICAL,
}


class DXFError(Exception):
    """Base class for every error raised by the codec.

    The context attributes are filled in by whichever layer knows them;
    the tag reader adds ``filename`` and ``line``, the record codec adds
    ``entity`` and ``field``.
    """

    kind = "DXFError"

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        line: int | None = None,
        entity: str | None = None,
        field: str | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.line = line
        self.entity = entity
        self.field = field
        self.code = code

    def locate(
        self,
        *,
        filename: str | None = None,
        line: int | None = None,
        entity: str | None = None,
    ) -> "DXFError":
        if self.filename is None:
            self.filename = filename
        if self.line is None:
            self.line = line
        if self.entity is None:
            self.entity = entity
        return self

    def __str__(self) -> str:
        where = ""
        if self.filename is not None or self.line is not None:
            where = f"{self.filename or '<stream>'}:{self.line if self.line is not None else '?'}: "
        return f"{where}{self.kind}: {self.message}"


class MalformedToken(DXFError):
    kind = "MalformedToken"


class TruncatedEntity(DXFError):
    kind = "TruncatedEntity"


class RecordError(DXFError):
    """Fatal for the current record only."""

    kind = "RecordError"


class TypeMismatch(RecordError):
    kind = "TypeMismatch"


class OutOfRange(RecordError):
    kind = "OutOfRange"


class UnsupportedByVersion(RecordError):
    kind = "UnsupportedByVersion"


class InvalidEntity(RecordError):
    kind = "InvalidEntity"

    def __init__(self, entity: str, field: str | None, reason: str, **context) -> None:
        label = f"{entity}.{field}" if field else entity
        super().__init__(f"{label} {reason}", entity=entity, field=field, **context)
        self.reason = reason

    def __reduce__(self):
        return (type(self), (self.entity, self.field, self.reason))


@dataclass(frozen=True)
class Diagnostic:
    level: str
    kind: str
    message: str
    filename: str | None = None
    line: int | None = None
    entity: str | None = None
    field: str | None = None
    code: int | None = None

    def __str__(self) -> str:
        line = self.line if self.line is not None else "?"
        return f"{self.filename or '<stream>'}:{line}: {self.level}: {self.kind}: {self.message}"


@dataclass
class Diagnostics:
    filename: str | None = None
    items: list[Diagnostic] = field(default_factory=list)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def add(
        self,
        level: str,
        kind: str,
        message: str,
        *,
        line: int | None = None,
        entity: str | None = None,
        field: str | None = None,
        code: int | None = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(
            level=level,
            kind=kind,
            message=message,
            filename=self.filename,
            line=line,
            entity=entity,
            field=field,
            code=code,
        )
        self.items.append(diagnostic)
        logger.log(_LOG_LEVELS[level], "%s", diagnostic)
        return diagnostic

    def warn(self, kind: str, message: str, **context) -> Diagnostic:
        return self.add(WARN, kind, message, **context)

    def error(self, kind: str, message: str, **context) -> Diagnostic:
        return self.add(ERROR, kind, message, **context)

    def fatal(self, kind: str, message: str, **context) -> Diagnostic:
        return self.add(FATAL, kind, message, **context)

    def record(self, exc: DXFError, level: str = ERROR) -> Diagnostic:
        return self.add(
            level,
            exc.kind,
            exc.message,
            line=exc.line,
            entity=exc.entity,
            field=exc.field,
            code=exc.code,
        )

    def of_kind(self, kind: str) -> list[Diagnostic]:
        return [item for item in self.items if item.kind == kind]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [item for item in self.items if item.level == WARN]

    @property
    def errors(self) -> list[Diagnostic]:
        return [item for item in self.items if item.level != WARN]

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .const import Revision


@dataclass(frozen=True)
class CodecConfig:
    flatland: bool = False
    strict: bool = False
    preserve_comments: bool = False
    target_revision: Revision | None = None

    def __post_init__(self) -> None:
        if self.target_revision is not None and not isinstance(self.target_revision, Revision):
            object.__setattr__(self, "target_revision", Revision.parse(self.target_revision))

    def replace(self, **changes: Any) -> "CodecConfig":
        return replace(self, **changes)


DEFAULT_CONFIG = CodecConfig()
